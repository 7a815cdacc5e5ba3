"""
Emotion labels, their emoji/colour/description lookups and the recent-emotions history.
"""
from __future__ import annotations
import random
from collections import deque
from enum import Enum
from typing import Deque, Dict, List, Optional, Tuple


class Emotion(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    NEUTRAL = "neutral"
    FEAR = "fear"
    DISGUST = "disgust"


ALL_EMOTIONS: Tuple[Emotion, ...] = tuple(Emotion)

EMOJI: Dict[Emotion, str] = {
    Emotion.HAPPY: "😊",
    Emotion.SAD: "😢",
    Emotion.ANGRY: "😠",
    Emotion.SURPRISED: "😲",
    Emotion.NEUTRAL: "😐",
    Emotion.FEAR: "😨",
    Emotion.DISGUST: "🤢",
}

COLOR_TAG: Dict[Emotion, str] = {e: f"text-emotion-{e.value}" for e in Emotion}

# BGR, for OpenCV drawing
COLOR_BGR: Dict[Emotion, Tuple[int, int, int]] = {
    Emotion.HAPPY: (0, 215, 255),
    Emotion.SAD: (230, 150, 60),
    Emotion.ANGRY: (40, 40, 230),
    Emotion.SURPRISED: (0, 165, 255),
    Emotion.NEUTRAL: (170, 170, 170),
    Emotion.FEAR: (200, 90, 150),
    Emotion.DISGUST: (60, 180, 80),
}

DESCRIPTION: Dict[Emotion, str] = {
    Emotion.HAPPY: "You look happy! Keep smiling!",
    Emotion.SAD: "You seem sad. Things will get better!",
    Emotion.ANGRY: "Take a deep breath. Calm thoughts!",
    Emotion.SURPRISED: "Wow! What surprised you?",
    Emotion.NEUTRAL: "Neutral expression detected.",
    Emotion.FEAR: "Don't worry, you're safe!",
    Emotion.DISGUST: "Something doesn't seem right?",
}

# DeepFace and FER label spellings
_ALIASES = {"surprise": Emotion.SURPRISED}


def coerce_emotion(value) -> Optional[Emotion]:
    """Parse an Emotion from an enum member or a (case-insensitive) label; None if unknown."""
    if isinstance(value, Emotion):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return Emotion(key)
    except ValueError:
        return None


def _lookup(table: Dict[Emotion, str], emotion) -> str:
    e = coerce_emotion(emotion)
    return table[e] if e is not None else table[Emotion.NEUTRAL]


def emotion_to_emoji(emotion) -> str:
    return _lookup(EMOJI, emotion)


def emotion_to_color(emotion) -> str:
    return _lookup(COLOR_TAG, emotion)


def emotion_to_description(emotion) -> str:
    return _lookup(DESCRIPTION, emotion)


def emotion_to_bgr(emotion) -> Tuple[int, int, int]:
    e = coerce_emotion(emotion)
    return COLOR_BGR[e] if e is not None else COLOR_BGR[Emotion.NEUTRAL]


def mock_detect_emotion(rng: Optional[random.Random] = None) -> Emotion:
    """Uniform random label; stands in for a detector when none is available."""
    return (rng or random).choice(ALL_EMOTIONS)


class EmotionHistory:
    """Most-recent-first record of the last few estimated emotions."""
    def __init__(self, maxlen: int = 5):
        self._items: Deque[Emotion] = deque(maxlen=max(1, int(maxlen)))

    def push(self, emotion: Emotion) -> None:
        # appendleft on a bounded deque drops the oldest from the right
        self._items.appendleft(emotion)

    def items(self) -> List[Emotion]:
        return list(self._items)

    @property
    def latest(self) -> Optional[Emotion]:
        return self._items[0] if self._items else None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
