from enum import StrEnum


class InsightPriority(StrEnum):
    alert = "alert"
    warning = "warning"
    watch = "watch"
    observation = "observation"
    affirmation = "affirmation"
