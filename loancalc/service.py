"""Mortgage calculation rules and the results kept for later retrieval."""

from __future__ import annotations

import dataclasses
import datetime
import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loancalc.cache import Cache

VALID_PROGRAMS = frozenset({"salary", "military", "base"})
DEFAULT_RATES_PATH = "programs.json"


class LoanError(Exception):
    """Base class for every rejected loan calculation."""


class UnknownProgramError(LoanError):
    def __init__(self, program: str) -> None:
        super().__init__(f"unknown program: {program}")


class ChooseProgramError(LoanError):
    def __init__(self) -> None:
        super().__init__("choose program")


class ChooseOnlyOneProgramError(LoanError):
    def __init__(self) -> None:
        super().__init__("choose only 1 program")


class InitialPaymentLowError(LoanError):
    def __init__(self) -> None:
        super().__init__("the initial payment should be more")


class FirstPaymentExceedsLoanError(LoanError):
    def __init__(self, initial_payment: float, object_cost: float) -> None:
        super().__init__(
            f"first payment exceeds loan sum: {initial_payment:f} >= {object_cost:f}"
        )


def _field(data: dict[str, Any], key: str, kinds: tuple[type, ...], default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ValueError(f"{key} has a wrong type")
    return value


@dataclass
class ExecuteRequest:
    """Parameters of one loan calculation."""

    program: dict[str, bool] | None = None
    object_cost: float = 0.0
    initial_payment: float = 0.0
    months: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> ExecuteRequest:
        """Build a request from decoded JSON; raise ValueError on malformed input."""
        if not isinstance(data, dict):
            raise ValueError("request must be an object")
        program = data.get("program")
        if program is not None:
            if not isinstance(program, dict):
                raise ValueError("program must be an object")
            if not all(flag is None or isinstance(flag, bool) for flag in program.values()):
                raise ValueError("program values must be booleans")
            program = {str(name): bool(flag) for name, flag in program.items()}
        return cls(
            program=program,
            object_cost=float(_field(data, "object_cost", (int, float), 0.0)),
            initial_payment=float(_field(data, "initial_payment", (int, float), 0.0)),
            months=_field(data, "months", (int,), 0),
        )


@dataclass
class Aggregates:
    last_payment_date: str = ""
    rate: int = 0
    loan_sum: float = 0.0
    monthly_payment: float = 0.0
    overpayment: float = 0.0


@dataclass
class Params:
    object_cost: float = 0.0
    initial_payment: float = 0.0
    months: int = 0


@dataclass
class ExecuteResponse:
    """Result of a loan calculation."""

    program: dict[str, bool] | None = None
    aggregates: Aggregates = field(default_factory=Aggregates)
    params: Params = field(default_factory=Params)

    def to_dict(self) -> dict[str, Any]:
        return {
            "program": dict(self.program) if self.program is not None else None,
            "aggregates": dataclasses.asdict(self.aggregates),
            "params": dataclasses.asdict(self.params),
        }


@dataclass
class CacheItem:
    """A stored calculation result together with its id."""

    response: ExecuteResponse = field(default_factory=ExecuteResponse)
    id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {**self.response.to_dict(), "id": self.id}


def load_program_rates(path: str | Path = DEFAULT_RATES_PATH) -> dict[str, int]:
    """Read the annual rates, in percent, of each program from a JSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise LoanError(f"unable to read {path.name}: {exc}") from exc
    except ValueError as exc:
        raise LoanError(f"error unmarshalling JSON: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict) or not all(
        rates is None
        or isinstance(rates, dict)
        and all(isinstance(r, int) and not isinstance(r, bool) for r in rates.values())
        for rates in data.values()
    ):
        raise LoanError("error unmarshalling JSON: unexpected structure")
    return dict(data.get("program_rates") or {})


def _divide(numerator: float, denominator: float) -> float:
    """Floating division that yields inf or nan instead of raising."""
    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, math.copysign(1.0, numerator) * math.copysign(1.0, denominator))


def _round_cents(value: float) -> float:
    """Round to two decimals, halves away from zero."""
    if not math.isfinite(value):
        return value
    scaled = value * 100
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / 100.0


def _add_months(day: datetime.date, months: int) -> datetime.date:
    """Shift by whole months, letting an overflowing day spill into the next month."""
    years, month_index = divmod(day.month - 1 + months, 12)
    first = datetime.date(day.year + years, month_index + 1, 1)
    return first + datetime.timedelta(days=day.day - 1)


def calculate_credit(
    request: ExecuteRequest,
    annual_rate: int,
    today: datetime.date | None = None,
) -> tuple[float, float, float, str]:
    """Return loan sum, monthly annuity payment, overpayment and last payment date."""
    loan_sum = request.object_cost - request.initial_payment
    monthly_rate = annual_rate / 12.0 / 100.0
    periods = float(request.months)
    growth = math.pow(1 + monthly_rate, periods)
    payment = _divide(loan_sum * (monthly_rate * growth), growth - 1)
    overpayment = payment * periods - loan_sum
    last_date = _add_months(today or datetime.date.today(), request.months).isoformat()
    return loan_sum, _round_cents(payment), _round_cents(overpayment), last_date


class Service:
    """Validates loan requests, computes them and keeps every result."""

    def __init__(
        self, cache: Cache | None = None, rates_path: str | Path = DEFAULT_RATES_PATH
    ) -> None:
        self.cache = cache if cache is not None else Cache()
        self.rates_path = rates_path

    def execute(self, request: ExecuteRequest) -> tuple[ExecuteResponse, int]:
        """Compute a loan, store the result and return it with its id."""
        rates = load_program_rates(self.rates_path)
        program = request.program or {}
        unknown = next((name for name in program if name not in VALID_PROGRAMS), None)
        if unknown is not None:
            raise UnknownProgramError(unknown)
        chosen = [name for name, selected in program.items() if selected]

        if request.initial_payment >= request.object_cost:
            raise FirstPaymentExceedsLoanError(request.initial_payment, request.object_cost)
        if not chosen:
            raise ChooseProgramError()
        if len(chosen) > 1:
            raise ChooseOnlyOneProgramError()
        if request.initial_payment < 0.2 * request.object_cost:
            raise InitialPaymentLowError()

        annual_rate = rates.get(chosen[0], 0)
        loan_sum, payment, overpayment, last_date = calculate_credit(request, annual_rate)
        response = ExecuteResponse(
            program=request.program,
            aggregates=Aggregates(last_date, annual_rate, loan_sum, payment, overpayment),
            params=Params(request.object_cost, request.initial_payment, request.months),
        )
        item_id = self.cache.add(CacheItem(response, len(self.cache.get_all())))
        return response, item_id

    def get_all(self) -> list[CacheItem]:
        """Return every stored calculation result."""
        return [item for item in self.cache.get_all() if isinstance(item, CacheItem)]