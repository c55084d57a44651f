"""User preference and behavior profile models."""

from __future__ import annotations

from pydantic import Field

from app.models.analysis import CamelModel

TIME_SLOTS = ("morning", "afternoon", "evening", "night")


class UserPreferences(CamelModel):
    dietary_restrictions: list[str] = Field(default_factory=list, alias="dietaryRestrictions")
    health_goals: list[str] = Field(default_factory=list, alias="healthGoals")
    allergens: list[str] = Field(default_factory=list)


class ScanPatterns(CamelModel):
    morning: int = 0
    afternoon: int = 0
    evening: int = 0
    night: int = 0


class BehaviorProfile(CamelModel):
    scan_patterns: ScanPatterns = Field(default_factory=ScanPatterns, alias="scanPatterns")
    common_concerns: list[str] = Field(default_factory=list, alias="commonConcerns")


class UserRecord(CamelModel):
    id: str
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    behavior_profile: BehaviorProfile = Field(
        default_factory=BehaviorProfile, alias="behaviorProfile"
    )


class UserContext(CamelModel):
    """Snapshot of a user's preferences and behavior at the moment of use."""

    preferences: UserPreferences = Field(default_factory=UserPreferences)
    behavior_profile: BehaviorProfile = Field(
        default_factory=BehaviorProfile, alias="behaviorProfile"
    )

    def is_empty(self) -> bool:
        prefs = self.preferences
        return not (
            prefs.dietary_restrictions
            or prefs.health_goals
            or prefs.allergens
            or self.behavior_profile.common_concerns
        )
