from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Optional

from farmbot.logging_config import get_logger
from farmbot.models import EggRecord, ExpenseRecord, FeedRecord, MortalityRecord, SaleRecord
from farmbot.services.dispatch_service import DEFAULT_SALE_CLIENT, normalize_mortality_reason, today_in
from farmbot.services.record_service import RecordRepository

logger = get_logger("command_service")

DATE_FORMAT = "%Y-%m-%d"


class CommandType(str, Enum):
    EGGS = "eggs"
    FEED = "feed"
    MORTALITY = "mortality"
    SALES = "sales"
    EXPENSES = "expenses"
    UNKNOWN = "unknown"


COMMAND_USAGE = {
    CommandType.EGGS: (
        "Egg Collection",
        "Please provide today's egg count, e.g. /eggs 120 3 cracked.",
    ),
    CommandType.FEED: (
        "Feed Usage",
        "Share feed consumption in kg with the flock size, e.g. /feed 150 2400.",
    ),
    CommandType.MORTALITY: (
        "Mortality Update",
        "Report mortality and suspected causes, e.g. /mortality 3 heat stress.",
    ),
    CommandType.SALES: (
        "Sales Report",
        "Capture egg sales as quantity, unit price, amount paid and client, e.g. /sales 10 2500 25000 Mamadou.",
    ),
    CommandType.EXPENSES: (
        "Expense Logging",
        "Record expenses with amount and label, e.g. /expenses 55000 medication vet-shop.",
    ),
    CommandType.UNKNOWN: (
        "Command Help",
        "Unknown command. Supported: /eggs, /feed, /mortality, /sales, /expenses.",
    ),
}


class InvalidCommandError(Exception):
    def __init__(self, command_type: CommandType, reason: str = "invalid command arguments"):
        self.command_type = command_type
        super().__init__(reason)


@dataclass
class Command:
    type: CommandType
    raw: str
    args: list[str] = field(default_factory=list)


def is_slash_command(text: str) -> bool:
    return (text or "").strip().startswith("/")


def parse_command(message: str) -> Command:
    """Derive a Command from free-form text. The leading slash is optional."""
    tokens = (message or "").strip().lower().split()
    if not tokens:
        return Command(type=CommandType.UNKNOWN, raw=message or "")

    head = tokens[0].lstrip("/")
    try:
        command_type = CommandType(head)
    except ValueError:
        command_type = CommandType.UNKNOWN

    return Command(type=command_type, raw=message, args=tokens[1:])


def usage_text(command_type: CommandType) -> str:
    title, message = COMMAND_USAGE.get(command_type, COMMAND_USAGE[CommandType.UNKNOWN])
    return f"{title}\n{message}"


def _to_int(command: Command, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidCommandError(command.type) from None


def _to_float(command: Command, value: str) -> float:
    try:
        return float(value.replace(",", "."))
    except ValueError:
        raise InvalidCommandError(command.type) from None


class CommandDispatcher:
    """Stateless single-command path: parse, save, confirm."""

    def __init__(self, repository: RecordRepository, tz_name: str = "UTC", today: Optional[Callable[[], date]] = None):
        self.repository = repository
        self.today = today or (lambda: today_in(tz_name))

    def handle_command(self, command: Command, sender: str) -> str:
        """Save the record a command describes and return the confirmation text.

        Raises InvalidCommandError for unknown commands or unusable arguments;
        persistence errors propagate.
        """
        day = self.today()
        logger.debug(
            "Dispatching command",
            extra={"context": {"command": command.type.value, "sender": sender, "args": command.args}},
        )

        if command.type == CommandType.EGGS:
            record = self.build_egg_record(command, day, sender)
            self.repository.save_egg_record(record)
            return f"Egg record saved for {day.strftime(DATE_FORMAT)} with {record.quantity} eggs."

        if command.type == CommandType.FEED:
            record = self.build_feed_record(command, day, sender)
            self.repository.save_feed_record(record)
            message = f"Feed usage saved for {day.strftime(DATE_FORMAT)}: {record.feed_kg:.2f} kg."
            if record.population:
                message += f" Population {record.population} birds."
            return message

        if command.type == CommandType.MORTALITY:
            record = self.build_mortality_record(command, day, sender)
            self.repository.save_mortality_record(record)
            message = f"Mortality logged for {day.strftime(DATE_FORMAT)}: {record.quantity} birds."
            if record.reason:
                message += f" Reason: {record.reason}."
            return message

        if command.type == CommandType.SALES:
            record = self.build_sale_record(command, day, sender)
            self.repository.save_sale_record(record)
            total = record.quantity * record.price_per_unit
            return (
                f"Sale recorded for {record.client}: {record.quantity} units @ {record.price_per_unit:.2f} "
                f"(expected {total:.2f}, paid {record.paid:.2f})."
            )

        if command.type == CommandType.EXPENSES:
            record = self.build_expense_record(command, day, sender)
            self.repository.save_expense_record(record)
            return f"Expense logged: {record.category} {record.amount:.2f} on {day.strftime(DATE_FORMAT)}."

        raise InvalidCommandError(command.type, "unsupported command")

    def build_egg_record(self, command: Command, day: date, sender: str) -> EggRecord:
        if not command.args:
            raise InvalidCommandError(command.type)
        quantity = _to_int(command, command.args[0])
        notes = " ".join(command.args[1:]) or None
        return EggRecord(date=day, quantity=quantity, notes=notes, reported_by=sender)

    def build_feed_record(self, command: Command, day: date, sender: str) -> FeedRecord:
        if not command.args:
            raise InvalidCommandError(command.type)
        feed_kg = _to_float(command, command.args[0])
        population = 0
        if len(command.args) > 1:
            try:
                population = int(command.args[1])
            except ValueError:
                population = 0
        return FeedRecord(date=day, feed_kg=feed_kg, population=population, reported_by=sender)

    def build_mortality_record(self, command: Command, day: date, sender: str) -> MortalityRecord:
        if not command.args:
            raise InvalidCommandError(command.type)
        quantity = _to_int(command, command.args[0])
        reason = " ".join(command.args[1:])
        return MortalityRecord(
            date=day,
            quantity=quantity,
            reason=normalize_mortality_reason(quantity, reason),
            reported_by=sender,
        )

    def build_sale_record(self, command: Command, day: date, sender: str) -> SaleRecord:
        if len(command.args) < 2:
            raise InvalidCommandError(command.type)
        quantity = _to_int(command, command.args[0])
        price_per_unit = _to_float(command, command.args[1])

        paid = quantity * price_per_unit
        idx = 2
        if len(command.args) > 2:
            try:
                paid = float(command.args[2].replace(",", "."))
                idx = 3
            except ValueError:
                pass

        client = " ".join(command.args[idx:]) or DEFAULT_SALE_CLIENT
        return SaleRecord(
            date=day,
            client=client,
            quantity=quantity,
            price_per_unit=price_per_unit,
            paid=paid,
            reported_by=sender,
        )

    def build_expense_record(self, command: Command, day: date, sender: str) -> ExpenseRecord:
        if len(command.args) < 2:
            raise InvalidCommandError(command.type)
        amount = _to_float(command, command.args[0])
        label = " ".join(command.args[1:])
        return ExpenseRecord(
            date=day,
            category=label,
            quantity=1.0,
            unit_price=amount,
            amount=amount,
            reported_by=sender,
        )
