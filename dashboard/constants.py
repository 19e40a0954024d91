from backend.schemas import DAYS_OF_WEEK, ExpenseCategory, IncomeCategory, Mood

MOODS = [mood.value for mood in Mood]
MOOD_EMOJIS = {
    "Amazing": "🤩",
    "Good": "😊",
    "Okay": "😐",
    "Bad": "😟",
    "Awful": "😢",
}
MOOD_COLORS = {
    "Amazing": "#8FB6D9",
    "Good": "#3772A6",
    "Okay": "#B8B8B8",
    "Bad": "#D9C979",
    "Awful": "#D95252",
}

EXPENSE_CATEGORIES = [category.value for category in ExpenseCategory]
INCOME_CATEGORIES = [category.value for category in IncomeCategory]

NOTIFICATION_OPTIONS = {
    "No reminder": None,
    "At due time": 0,
    "5 minutes before": 5,
    "15 minutes before": 15,
    "30 minutes before": 30,
    "1 hour before": 60,
}

WEEKDAYS = DAYS_OF_WEEK

CHART_COLORS = ["#a9c0e8", "#cbb5e2", "#b7d1c9", "#f2d4a2", "#c9b3e5", "#e8a9a9", "#9fd1b7", "#d9c979", "#8e79af"]

REPORT_PERIODS = {"This week": "week", "This month": "month", "This year": "year"}
