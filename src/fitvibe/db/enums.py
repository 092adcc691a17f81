"""Enumerations shared by ORM models, services and schemas.

Values are stored as strings; the enum names double as the API vocabulary.
"""

from __future__ import annotations

from enum import Enum


class Gender(str, Enum):
    NOT_SPECIFIED = "NotSpecified"
    MALE = "Male"
    FEMALE = "Female"
    NON_BINARY = "NonBinary"
    OTHER = "Other"


class FitnessLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    ELITE = "Elite"


class FitnessGoal(str, Enum):
    WEIGHT_LOSS = "WeightLoss"
    MUSCLE_GAIN = "MuscleGain"
    CARDIO_FITNESS = "CardioFitness"
    FLEXIBILITY = "Flexibility"
    MAINTENANCE = "Maintenance"
    SPORT_PERFORMANCE = "SportPerformance"
    GENERAL_WELLNESS = "GeneralWellness"


class ActivityKind(str, Enum):
    """Where/how an activity is performed."""

    INDOOR = "Indoor"
    OUTDOOR = "Outdoor"
    VIRTUAL = "Virtual"
    MANUAL = "Manual"
    TEAM_SPORT = "TeamSport"
    HYBRID = "Hybrid"


class ActivityCategory(str, Enum):
    CARDIO = "Cardio"
    STRENGTH = "Strength"
    FLEXIBILITY = "Flexibility"
    CROSS_TRAINING = "CrossTraining"
    BALANCE = "Balance"
    ENDURANCE = "Endurance"
    RECOVERY = "Recovery"
    SPORT = "Sport"
    MIND_BODY = "MindBody"


class ActivityStatus(str, Enum):
    CREATED = "Created"
    ACTIVE = "Active"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ChallengeType(str, Enum):
    DISTANCE = "Distance"
    CALORIES = "Calories"
    ACTIVITY_COUNT = "ActivityCount"
    DURATION = "Duration"
    MILESTONE = "Milestone"
    STREAK = "Streak"
    IMPROVEMENT = "Improvement"
    CUSTOM = "Custom"


class BadgeCategory(str, Enum):
    ACTIVITY = "Activity"
    STREAK = "Streak"
    SOCIAL = "Social"
    CHALLENGE = "Challenge"
    MILESTONE = "Milestone"
    SPECIAL = "Special"
    ACHIEVEMENT = "Achievement"


class BadgeRarity(str, Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"


class GoalType(str, Enum):
    DISTANCE = "Distance"
    DURATION = "Duration"
    FREQUENCY = "Frequency"
    NUMERIC = "Numeric"
    COMPLETION = "Completion"


class GoalFrequency(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    ONE_TIME = "OneTime"
    CUSTOM = "Custom"


class GoalStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    EXPIRED = "Expired"
    ABANDONED = "Abandoned"


class SharePrivacy(str, Enum):
    PUBLIC = "Public"
    FOLLOWERS_ONLY = "FollowersOnly"
    PRIVATE = "Private"


class FriendRequestStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"


class CheerType(str, Enum):
    TEXT = "text"
    EMOJI = "emoji"
    AUDIO = "audio"
    POWERUP = "powerup"
