import csv
import random
from typing import List, Optional, Sequence, Tuple

from feud.models import Answer, Question


def parse_row(row: Sequence[str]) -> Optional[Question]:
    """``question, answer1, points1, answer2, points2, ...`` -> Question.

    Answers with blank text or non-integer points are skipped; a row with no
    usable answers yields None.
    """
    if not row or not row[0].strip():
        return None
    answers = []
    for i in range(1, len(row) - 1, 2):
        text = row[i].strip()
        try:
            points = int(row[i + 1].strip())
        except ValueError:
            continue
        if text and points > 0:
            answers.append(Answer(text, points))
    if not answers:
        return None
    return Question(row[0].strip(), answers)


class QuestionBank:
    def __init__(self, questions: Optional[List[Question]] = None):
        self.questions = list(questions or [])

    def __len__(self):
        return len(self.questions)

    @classmethod
    def from_csv(cls, path: str) -> 'QuestionBank':
        with open(path, newline='', encoding='utf-8') as fh:
            reader = csv.reader(fh)
            next(reader, None)  # header
            questions = [q for q in (parse_row(row) for row in reader) if q is not None]
        return cls(questions)

    def get(self, index: int) -> Question:
        source = self.questions[index]
        # Fresh copy so a room never shares answer objects with the bank
        return Question(source.question, [Answer(a.text, a.points) for a in source.answers])

    def draw(self, used: Sequence[int], rng=None) -> Tuple[int, Question, bool]:
        """Pick an unused question at random.

        Returns ``(index, question, exhausted)``; ``exhausted`` is True when
        every question had been used and the pool started over.
        """
        if not self.questions:
            raise LookupError('question bank is empty')
        rng = rng or random
        used_set = set(used)
        available = [i for i in range(len(self.questions)) if i not in used_set]
        exhausted = not available
        if exhausted:
            available = list(range(len(self.questions)))
        index = rng.choice(available)
        return index, self.get(index), exhausted
