"""
Static content loading: question dataset and strand rubrics.
"""
from .loader import (
    DatasetIssue,
    LevelBlock,
    QuestionDataset,
    block_id_for,
    load_question_dataset,
    load_rubric_book,
    parse_dataset,
)

__all__ = [
    "DatasetIssue",
    "LevelBlock",
    "QuestionDataset",
    "block_id_for",
    "load_question_dataset",
    "load_rubric_book",
    "parse_dataset",
]
