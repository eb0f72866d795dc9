"""IntervalSpec class for recurring-service cadence."""

from dataclasses import dataclass
from enum import Enum

from .errors import ValidationError


class IntervalUnit(Enum):
    DAYS = "days"
    MONTHS = "months"


@dataclass(frozen=True)
class IntervalSpec:
    """How often a client needs service: business days or calendar months."""

    value: int
    unit: IntervalUnit = IntervalUnit.MONTHS

    def __post_init__(self):
        # bool is an int subclass; True is not a valid interval
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(f"Interval value must be an integer, got {self.value!r}")
        if self.value < 1:
            raise ValidationError(f"Interval value must be at least 1, got {self.value}")
        if not isinstance(self.unit, IntervalUnit):
            object.__setattr__(self, "unit", parse_unit(self.unit))

    @property
    def display_name(self) -> str:
        """Human-readable interval, e.g. '6 months' or '10 business days'."""
        if self.unit is IntervalUnit.DAYS:
            noun = "business day" if self.value == 1 else "business days"
        else:
            noun = "month" if self.value == 1 else "months"
        return f"{self.value} {noun}"


def parse_unit(unit) -> IntervalUnit:
    """Accept 'days'/'months' in any case (plus the singular forms)."""
    if isinstance(unit, IntervalUnit):
        return unit
    text = str(unit).strip().lower()
    if not text.endswith("s"):
        text += "s"
    try:
        return IntervalUnit(text)
    except ValueError:
        raise ValidationError(f"Unknown interval unit '{unit}' (expected days or months)") from None
