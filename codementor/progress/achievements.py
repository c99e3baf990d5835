"""
CodeMentor - Achievement Catalog
Requirement keys, metric calculators and the default catalog
"""

import math
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


# ============================================
# ENUMS
# ============================================

class AchievementCategory(str, Enum):
    LEARNING = "learning"
    CHALLENGES = "challenges"
    STREAK = "streak"
    COMPLETION = "completion"
    SOCIAL = "social"


class Requirement(str, Enum):
    """Which derived metric an achievement's progress is measured by"""
    COMPLETED_LESSONS = "completedLessons"
    COMPLETED_CHALLENGES = "completedChallenges"
    COMPLETED_COURSES = "completedCourses"
    STREAK = "streak"
    CODING_HOURS = "codingHours"
    COMPLETED_QUIZZES = "completedQuizzes"
    PERFECT_QUIZZES = "perfectQuizzes"
    QUIZ_AVERAGE = "quizAverage"


# ============================================
# METRICS
# ============================================

def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (99.5 -> 100)"""
    return int(math.floor(value + 0.5))


@dataclass
class MetricSources:
    """Everything the calculators read, loaded once per reconciliation"""
    user: dict
    progress: dict
    attempts: List[dict] = field(default_factory=list)
    completed_courses: int = 0


def _perfect_quiz_count(sources: MetricSources) -> int:
    return sum(1 for a in sources.attempts if round_half_up(a.get("score", 0)) == 100)


def _quiz_average(sources: MetricSources) -> int:
    if not sources.attempts:
        return 0
    total = sum(a.get("score", 0) for a in sources.attempts)
    return round_half_up(total / len(sources.attempts))


METRIC_CALCULATORS: Dict[Requirement, Callable[[MetricSources], int]] = {
    Requirement.COMPLETED_LESSONS: lambda s: len(s.progress.get("completed_lessons") or []),
    Requirement.COMPLETED_CHALLENGES: lambda s: len(s.progress.get("completed_challenges") or []),
    Requirement.COMPLETED_COURSES: lambda s: s.completed_courses,
    Requirement.STREAK: lambda s: s.user.get("streak", 0),
    Requirement.CODING_HOURS: lambda s: round_half_up((s.progress.get("total_coding_time") or 0) / 60),
    Requirement.COMPLETED_QUIZZES: lambda s: len(s.attempts),
    Requirement.PERFECT_QUIZZES: _perfect_quiz_count,
    Requirement.QUIZ_AVERAGE: _quiz_average,
}

_unmapped = set(Requirement) - set(METRIC_CALCULATORS)
if _unmapped:
    raise RuntimeError(f"Requirements without a metric calculator: {sorted(r.value for r in _unmapped)}")


def parse_requirement(value: str) -> Optional[Requirement]:
    try:
        return Requirement(value)
    except ValueError:
        return None


def compute_progress(achievement: dict, sources: MetricSources) -> int:
    """
    Current progress value for one catalog entry.
    Entries with an unrecognized requirement key stay at 0.
    """
    requirement = parse_requirement(achievement.get("requirement"))
    if requirement is None:
        logger.warning(
            f"Unrecognized requirement '{achievement.get('requirement')}' "
            f"on achievement {achievement.get('achievement_id')}"
        )
        return 0
    return METRIC_CALCULATORS[requirement](sources)


# ============================================
# DEFAULT CATALOG
# ============================================

ACHIEVEMENT_DEFINITIONS = {
    # Learning
    "first_steps": {
        "title": "First Steps",
        "description": "Complete your first lesson",
        "category": "learning",
        "icon": "school-outline",
        "color": "#22C55E",
        "target_value": 1,
        "xp_reward": 25,
        "requirement": "completedLessons"
    },
    "knowledge_seeker": {
        "title": "Knowledge Seeker",
        "description": "Complete 10 lessons",
        "category": "learning",
        "icon": "book-outline",
        "color": "#3B82F6",
        "target_value": 10,
        "xp_reward": 100,
        "requirement": "completedLessons"
    },
    "dedicated_student": {
        "title": "Dedicated Student",
        "description": "Complete 50 lessons",
        "category": "learning",
        "icon": "school-outline",
        "color": "#8B5CF6",
        "target_value": 50,
        "xp_reward": 250,
        "requirement": "completedLessons"
    },
    "master_learner": {
        "title": "Master Learner",
        "description": "Complete 100 lessons",
        "category": "learning",
        "icon": "ribbon-outline",
        "color": "#EC4899",
        "target_value": 100,
        "xp_reward": 500,
        "requirement": "completedLessons"
    },
    # Streak
    "getting_started": {
        "title": "Getting Started",
        "description": "Maintain a 3-day streak",
        "category": "streak",
        "icon": "flame-outline",
        "color": "#F59E0B",
        "target_value": 3,
        "xp_reward": 30,
        "requirement": "streak"
    },
    "consistency_is_key": {
        "title": "Consistency is Key",
        "description": "Maintain a 7-day streak",
        "category": "streak",
        "icon": "flame",
        "color": "#F97316",
        "target_value": 7,
        "xp_reward": 70,
        "requirement": "streak"
    },
    "dedicated_coder": {
        "title": "Dedicated Coder",
        "description": "Maintain a 30-day streak",
        "category": "streak",
        "icon": "bonfire-outline",
        "color": "#EF4444",
        "target_value": 30,
        "xp_reward": 300,
        "requirement": "streak"
    },
    # Challenges
    "challenge_accepted": {
        "title": "Challenge Accepted",
        "description": "Complete your first coding challenge",
        "category": "challenges",
        "icon": "code-slash-outline",
        "color": "#06B6D4",
        "target_value": 1,
        "xp_reward": 40,
        "requirement": "completedChallenges"
    },
    "problem_solver": {
        "title": "Problem Solver",
        "description": "Complete 10 coding challenges",
        "category": "challenges",
        "icon": "code-slash",
        "color": "#0EA5E9",
        "target_value": 10,
        "xp_reward": 150,
        "requirement": "completedChallenges"
    },
    # Completion
    "course_graduate": {
        "title": "Course Graduate",
        "description": "Complete your first full course",
        "category": "completion",
        "icon": "trophy-outline",
        "color": "#FBBF24",
        "target_value": 1,
        "xp_reward": 200,
        "requirement": "completedCourses"
    },
    # Quizzes
    "quiz_taker": {
        "title": "Quiz Taker",
        "description": "Finish your first quiz",
        "category": "challenges",
        "icon": "help-circle-outline",
        "color": "#14B8A6",
        "target_value": 1,
        "xp_reward": 20,
        "requirement": "completedQuizzes"
    },
    "quiz_regular": {
        "title": "Quiz Regular",
        "description": "Finish 10 quizzes",
        "category": "challenges",
        "icon": "list-circle-outline",
        "color": "#0D9488",
        "target_value": 10,
        "xp_reward": 100,
        "requirement": "completedQuizzes"
    },
    "perfect_score": {
        "title": "Perfect Score",
        "description": "Get 100% on a quiz",
        "category": "challenges",
        "icon": "checkmark-circle-outline",
        "color": "#10B981",
        "target_value": 1,
        "xp_reward": 50,
        "requirement": "perfectQuizzes"
    },
    "sharp_mind": {
        "title": "Sharp Mind",
        "description": "Keep an average quiz score of 80% or more",
        "category": "challenges",
        "icon": "bulb-outline",
        "color": "#A855F7",
        "target_value": 80,
        "xp_reward": 100,
        "requirement": "quizAverage"
    },
    # Coding time
    "coding_enthusiast": {
        "title": "Coding Enthusiast",
        "description": "Spend 10 hours coding",
        "category": "learning",
        "icon": "time-outline",
        "color": "#6366F1",
        "target_value": 10,
        "xp_reward": 100,
        "requirement": "codingHours"
    },
    "code_warrior": {
        "title": "Code Warrior",
        "description": "Spend 50 hours coding",
        "category": "learning",
        "icon": "timer-outline",
        "color": "#8B5CF6",
        "target_value": 50,
        "xp_reward": 300,
        "requirement": "codingHours"
    }
}
