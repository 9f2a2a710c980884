"""UI utility functions."""


def format_time(seconds: int) -> str:
    """Format seconds as ``m:ss`` (e.g. 125 -> "2:05")."""
    seconds = max(int(seconds), 0)
    return f"{seconds // 60}:{seconds % 60:02d}"


def question_progress(question_index: int, question_count: int) -> float:
    """Fraction of the interview reached, counting the current question."""
    if question_count <= 0:
        return 0.0
    return min((question_index + 1) / question_count, 1.0)
