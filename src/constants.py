"""
Shared constants used across multiple modules.
Single source of truth for moods, metric weights and the stress questionnaire.
"""

# Moods accepted by the daily check-in (compared case-insensitively)
VALID_MOODS = [
    "happy", "sad", "anxious", "excited", "calm", "angry", "hopeful",
    "overwhelmed", "grateful", "frustrated", "stressed", "energetic",
    "relaxed", "tired", "joyful", "optimistic",
]

CHECKIN_METRICS = ("feelingScale", "sleepQuality", "stressLevel")
METRIC_MIN = 1
METRIC_MAX = 10
NOTES_MAX_LENGTH = 500

# Daily wellness score weights; stress is inverted (11 - stress) before weighting
FEELING_WEIGHT = 0.4
SLEEP_WEIGHT = 0.3
STRESS_WEIGHT = 0.3

# 8-question stress instrument
STRESS_WEIGHTS = {
    1: 0.20,
    2: 0.15,
    3: 0.10,
    4: 0.20,
    5: 0.15,
    6: 0.10,
    7: 0.05,
    8: 0.05,
}
SLIDER_QUESTIONS = {3, 7}

STRESS_QUESTIONS = {
    1: "Overall feeling",
    2: "Sleep quality",
    3: "Energy level",
    4: "Overwhelm level",
    5: "Focus ability",
    6: "Relationship quality",
    7: "Physical comfort",
    8: "Appetite",
}

# Readable answers for the categorical questions (sliders render as "X/10")
STRESS_ANSWER_LABELS = {
    1: {1: "Amazing", 2: "Good", 3: "Okay", 4: "Not great", 5: "Terrible"},
    2: {1: "Like a baby", 2: "Pretty well", 3: "Okay", 4: "Restless", 5: "Barely slept"},
    4: {1: "Zen", 2: "Calm", 3: "Balanced", 4: "Stressed", 5: "Overwhelmed"},
    5: {1: "Laser focused", 2: "Pretty good", 3: "Average", 4: "Distracted", 5: "Can't focus"},
    6: {1: "Loving", 2: "Good", 3: "Neutral", 4: "Tense", 5: "Difficult"},
    8: {1: "Great appetite", 2: "Normal", 3: "Okay", 4: "Poor appetite", 5: "No appetite"},
}

STRESS_LEVELS = ["Very Low", "Low", "Moderate", "High", "Very High"]
# inclusive upper score of every level but the last
STRESS_LEVEL_CEILINGS = (1, 3, 6, 8)

# Weekly trend classification
TREND_THRESHOLD = 0.5
TREND_IMPROVING = "improving"
TREND_DECLINING = "declining"
TREND_STABLE = "stable"

# Correlation
MIN_CORRELATION_RECORDS = 5

# Moods that, at low intensity, flag a quick mood check for follow-up
AT_RISK_MOODS = {"sad", "hopeless", "overwhelmed", "anxious"}
