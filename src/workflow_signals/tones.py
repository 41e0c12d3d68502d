"""Presentation tones for signal badges."""

from .config import SignalTone, WipSeverity
from .models import SlaRollup, StuckRollup


def sla_tone(sla: SlaRollup) -> SignalTone:
    if sla.critical_count > 0:
        return SignalTone.DANGER
    if sla.breach_count > 0:
        return SignalTone.WARNING
    if sla.warning_count > 0:
        return SignalTone.INFO
    return SignalTone.NEUTRAL


def stuck_tone(stuck: StuckRollup) -> SignalTone:
    if stuck.critical_stuck_count > 0:
        return SignalTone.DANGER
    if stuck.stuck_count > 0:
        return SignalTone.WARNING
    return SignalTone.NEUTRAL


def bottleneck_tone(likelihood_score: float) -> SignalTone:
    if likelihood_score >= 60:
        return SignalTone.DANGER
    if likelihood_score >= 35:
        return SignalTone.WARNING
    if likelihood_score >= 20:
        return SignalTone.INFO
    return SignalTone.NEUTRAL


def wip_tone(severity: WipSeverity) -> SignalTone:
    return {
        WipSeverity.CRITICAL: SignalTone.DANGER,
        WipSeverity.HARD: SignalTone.WARNING,
        WipSeverity.SOFT: SignalTone.INFO,
        WipSeverity.NONE: SignalTone.NEUTRAL,
    }[severity]
