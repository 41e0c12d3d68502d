"""One-line rationale for an item prediction."""

import re
from typing import Sequence

from .config import RATIONALE_DRIVERS, RATIONALE_MAX_CHARS, RISK_PHRASES, RiskLevel
from .models import RiskContribution

_NEWLINES = re.compile(r"[\r\n]+")


def build_rationale(risk_level: RiskLevel, contributions: Sequence[RiskContribution]) -> str:
    """``"High risk: stuck + sla pressure."`` or ``"Low risk."`` without drivers."""
    phrases = [RISK_PHRASES[c.code] for c in contributions[:RATIONALE_DRIVERS]]
    text = f"{RiskLevel(risk_level).value.capitalize()} risk"
    text += f": {' + '.join(phrases)}." if phrases else "."
    return _NEWLINES.sub(" ", text)[:RATIONALE_MAX_CHARS]
