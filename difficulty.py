"""Difficulty tiers and the engine settings they map to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Union

from utils import ReportingLevel, report, warning_text

SKILL_OPTION_NAME = "Skill Level"


class InvalidConfiguration(ValueError):
    """Raised when a difficulty tier is not one of :class:`DifficultyTier`."""


class DifficultyTier(IntEnum):
    EASY = 5
    MEDIUM = 10
    HARD = 15
    EXPERT = 20


@dataclass(frozen=True)
class DifficultySetting:
    tier: DifficultyTier
    label: str
    skill_level: int
    search_depth: int

    def option_command(self) -> str:
        return f"setoption name {SKILL_OPTION_NAME} value {self.skill_level}"


DIFFICULTY_TABLE: Dict[DifficultyTier, DifficultySetting] = {
    DifficultyTier.EASY: DifficultySetting(DifficultyTier.EASY, "Easy", 2, 5),
    DifficultyTier.MEDIUM: DifficultySetting(DifficultyTier.MEDIUM, "Medium", 10, 10),
    DifficultyTier.HARD: DifficultySetting(DifficultyTier.HARD, "Hard", 15, 15),
    DifficultyTier.EXPERT: DifficultySetting(DifficultyTier.EXPERT, "Expert", 20, 20),
}

DEFAULT_TIER = DifficultyTier.MEDIUM

TierLike = Union[DifficultyTier, int, str]


def resolve(tier: TierLike) -> DifficultySetting:
    """Map a tier (enum member, its value, or its name) to its engine setting."""
    if isinstance(tier, DifficultyTier):
        return DIFFICULTY_TABLE[tier]
    if isinstance(tier, str):
        key = tier.strip().upper()
        if key in DifficultyTier.__members__:
            return DIFFICULTY_TABLE[DifficultyTier[key]]
        raise InvalidConfiguration(f"Unknown difficulty tier '{tier}'")
    # bool is an int subclass but never a tier
    if isinstance(tier, int) and not isinstance(tier, bool):
        try:
            return DIFFICULTY_TABLE[DifficultyTier(tier)]
        except ValueError:
            pass
    raise InvalidConfiguration(f"Unknown difficulty tier {tier!r}")


def resolve_or_default(
    tier: TierLike, reporting_level: ReportingLevel = ReportingLevel.BASIC
) -> DifficultySetting:
    try:
        return resolve(tier)
    except InvalidConfiguration as exc:
        fallback = DIFFICULTY_TABLE[DEFAULT_TIER]
        report(
            reporting_level,
            ReportingLevel.QUIET,
            warning_text(f"{exc}; falling back to {fallback.label}"),
        )
        return fallback


def tier_labels() -> Dict[DifficultyTier, str]:
    return {tier: setting.label for tier, setting in DIFFICULTY_TABLE.items()}
