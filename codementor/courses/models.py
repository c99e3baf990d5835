from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from enum import Enum

# ==================== ENUMS ====================

class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

class ContentType(str, Enum):
    TEXT = "text"
    CODE = "code"
    IMAGE = "image"

# ==================== COURSE MODELS ====================

class CourseCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    difficulty: Difficulty
    tags: List[str] = []

# ==================== LESSON MODELS ====================

class LessonContentBlock(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    type: ContentType
    title: Optional[str] = None
    content: Optional[str] = None
    code_language: Optional[str] = None

class LessonCreate(BaseModel):
    course_id: str
    title: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)
    duration: int = Field(..., gt=0)  # minutes
    content: List[LessonContentBlock] = []
    order: Optional[int] = None

class LessonProgressUpdate(BaseModel):
    # Range is checked in the route so the client gets a 400 like the other validation errors
    progress: Optional[float] = None

# ==================== QUIZ MODELS ====================

class QuizQuestion(BaseModel):
    question: str
    options: List[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)  # index into options

class QuizCreate(BaseModel):
    course_id: str
    questions: List[QuizQuestion] = Field(..., min_length=1)
    xp_reward: int = Field(100, ge=0)

class QuizSubmission(BaseModel):
    quiz_id: str
    course_id: Optional[str] = None
    answers: List[Optional[int]] = []

# ==================== CHALLENGE MODELS ====================

class ChallengeCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str
    description: str
    difficulty: Difficulty
    xp: int = Field(..., ge=0)
    tags: List[str] = []
