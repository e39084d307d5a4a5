from enum import StrEnum


class Classification(StrEnum):
    essential = "Essential"
    discretionary = "Discretionary"
    non_spending = "Non-Spending"
    income = "Income"


class GroupBy(StrEnum):
    category = "category"
    classification = "classification"
    merchant = "merchant"
