import time
from typing import Any, Dict, List, Optional

SCREENS = ('qr', 'tutorial', 'setup', 'game', 'end')
NAVIGABLE_SCREENS = ('qr', 'tutorial', 'setup', 'game')
MAX_STRIKES = 3
MIN_ROUNDS = 1
MAX_ROUNDS = 50
DEFAULT_TOTAL_ROUNDS = 7
DEFAULT_TEAM1_NAME = 'TEAM 1'
DEFAULT_TEAM2_NAME = 'TEAM 2'


class Answer:
    def __init__(self, text: str, points: int):
        self.text = text
        self.points = int(points)

    def to_dict(self):
        return {'text': self.text, 'points': self.points}


class Question:
    """A board question. Answer indices are fixed once constructed."""

    def __init__(self, question: str, answers: List[Answer]):
        self.question = question
        # Stable sort keeps equal-point answers in source order
        self.answers = sorted(answers, key=lambda a: a.points, reverse=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        return cls(
            data['question'],
            [Answer(a['text'], a['points']) for a in data.get('answers', [])],
        )

    def answer_texts(self) -> List[str]:
        return [a.text for a in self.answers]

    def find_answer(self, text: Optional[str]) -> Optional[int]:
        """Case-insensitive exact lookup of a board answer by its text."""
        if not text:
            return None
        wanted = text.strip().lower()
        for idx, answer in enumerate(self.answers):
            if answer.text.strip().lower() == wanted:
                return idx
        return None

    def to_dict(self):
        return {
            'question': self.question,
            'answers': [a.to_dict() for a in self.answers],
        }

    def to_public_dict(self, revealed):
        answers = []
        for idx, answer in enumerate(self.answers):
            item = {'index': idx, 'revealed': idx in revealed}
            if item['revealed']:
                item.update(answer.to_dict())
            answers.append(item)
        return {
            'question': self.question,
            'answerCount': len(self.answers),
            'answers': answers,
        }


class Timer:
    """Advisory countdown. Ticks come from the host's clock, not the server."""

    def __init__(self, seconds: int = 30):
        self.running = False
        self.configured_seconds = seconds
        self.current_seconds = seconds
        self._finish_sent = False

    def start(self, seconds: int) -> None:
        self.running = True
        self.configured_seconds = seconds
        self.current_seconds = seconds
        self._finish_sent = False

    def pause(self) -> None:
        self.running = False

    def reset(self, seconds: int) -> None:
        self.running = False
        self.configured_seconds = seconds
        self.current_seconds = seconds
        self._finish_sent = False

    def tick(self, seconds: int) -> None:
        self.current_seconds = max(0, seconds)

    def finish(self) -> bool:
        """Stop the countdown; True only the first time per countdown."""
        self.running = False
        self.current_seconds = 0
        if self._finish_sent:
            return False
        self._finish_sent = True
        return True

    def to_dict(self):
        return {
            'running': self.running,
            'configuredSeconds': self.configured_seconds,
            'currentSeconds': self.current_seconds,
        }


class CheckOutcome:
    """Effect of one judge verdict on the room state."""

    def __init__(self, correct: bool, player_answer: str, index: Optional[int] = None,
                 points: int = 0, already_revealed: bool = False):
        self.correct = correct
        self.player_answer = player_answer
        self.index = index
        self.points = points
        self.already_revealed = already_revealed


class GameState:
    """Authoritative per-room game state.

    All mutation goes through the transition methods below so that the
    invariants (strikes in [0, 3], reveals within the board, round within
    [1, totalRounds], scores only raised by awards) live in one place.
    """

    def __init__(self, default_timer_sec: int = 30):
        self._default_timer_sec = default_timer_sec
        self.screen = 'qr'
        self._reset_fields()

    def _reset_fields(self):
        self.team1_name = DEFAULT_TEAM1_NAME
        self.team2_name = DEFAULT_TEAM2_NAME
        self.team1_score = 0
        self.team2_score = 0
        self.total_rounds = DEFAULT_TOTAL_ROUNDS
        self.current_round = 1
        self.current_question: Optional[Question] = None
        self.revealed_answers: List[int] = []
        self.strikes = 0
        self.timer = Timer(self._default_timer_sec)
        self.entry_log: List[Dict[str, Any]] = []
        self.round_points_earned = 0
        self.used_question_indices: List[int] = []
        self.correct_guesses_this_round: List[Dict[str, Any]] = []
        self.last_winning_team: Optional[int] = None
        self.last_points_awarded = 0
        # Bumped whenever the board is replaced; pending answer checks compare it
        self.question_serial = getattr(self, 'question_serial', 0) + 1

    def _clear_round(self):
        self.revealed_answers = []
        self.strikes = 0
        self.entry_log = []
        self.round_points_earned = 0
        self.correct_guesses_this_round = []
        self.last_winning_team = None
        self.last_points_awarded = 0

    def team_name(self, team: Optional[int]) -> Optional[str]:
        if team == 1:
            return self.team1_name
        if team == 2:
            return self.team2_name
        return None

    # ---- Lifecycle ----

    def start_game(self, team1_name: str, team2_name: str, total_rounds: int) -> None:
        self._reset_fields()
        self.team1_name = team1_name or DEFAULT_TEAM1_NAME
        self.team2_name = team2_name or DEFAULT_TEAM2_NAME
        self.total_rounds = max(MIN_ROUNDS, min(MAX_ROUNDS, int(total_rounds)))
        self.screen = 'game'

    def load_question(self, question: Question, increment_round: bool = False,
                      question_index: Optional[int] = None) -> None:
        self.current_question = question
        self._clear_round()
        self.question_serial += 1
        if increment_round and self.current_round < self.total_rounds:
            self.current_round += 1
        if question_index is not None and question_index not in self.used_question_indices:
            self.used_question_indices.append(question_index)

    def navigate(self, screen: str) -> None:
        if screen not in NAVIGABLE_SCREENS:
            raise ValueError(f'cannot navigate to {screen!r}')
        self.screen = screen

    def reset_round(self) -> None:
        self._clear_round()
        self.question_serial += 1

    def reset_game(self) -> None:
        self._reset_fields()
        self.screen = 'setup'

    def end_game(self) -> None:
        self.screen = 'end'
        self.timer.pause()
        self.question_serial += 1

    def clear_entry_log(self) -> None:
        self.entry_log = []

    def clear_used_questions(self) -> None:
        self.used_question_indices = []

    # ---- Board ----

    def reveal_answer(self, index: int) -> bool:
        """Reveal one answer. Returns False when already revealed or invalid."""
        if self.current_question is None:
            return False
        if index < 0 or index >= len(self.current_question.answers):
            return False
        if index in self.revealed_answers:
            return False
        self.revealed_answers.append(index)
        return True

    def add_strike(self) -> int:
        self.strikes = min(MAX_STRIKES, self.strikes + 1)
        return self.strikes

    def remove_strike(self) -> int:
        self.strikes = max(0, self.strikes - 1)
        return self.strikes

    def _log_entry(self, entry: str, is_correct: bool) -> Dict[str, Any]:
        record = {'entry': entry, 'isCorrect': is_correct, 'timestamp': time.time()}
        self.entry_log.append(record)
        return record

    def apply_verdict(self, player_answer: str, match: bool,
                      matched_answer: Optional[str]) -> CheckOutcome:
        """Apply a judge verdict for the current board.

        A verdict naming text that is not on the board counts as no match.
        A match on an already revealed answer is logged as correct but
        neither re-reveals nor re-counts its points.
        """
        index = None
        if match and self.current_question is not None:
            index = self.current_question.find_answer(matched_answer)

        if index is None:
            self.add_strike()
            self._log_entry(player_answer, False)
            return CheckOutcome(False, player_answer)

        answer = self.current_question.answers[index]
        already = index in self.revealed_answers
        if not already:
            self.revealed_answers.append(index)
            self.round_points_earned += answer.points
            self.correct_guesses_this_round.append({'answer': answer.text, 'points': answer.points})
        self._log_entry(player_answer, True)
        return CheckOutcome(True, player_answer, index=index, points=answer.points,
                            already_revealed=already)

    # ---- Scoring ----

    def award_points(self, team: int, points: int) -> None:
        if team not in (1, 2):
            raise ValueError('team must be 1 or 2')
        points = max(0, int(points))
        if team == 1:
            self.team1_score += points
        else:
            self.team2_score += points
        self.last_winning_team = team
        self.last_points_awarded = points

    def round_summary(self, correct_guesses: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """Summary of the current round using the last award.

        Client-supplied guesses win when present; otherwise the guesses the
        server tracked itself are used.
        """
        guesses = correct_guesses if correct_guesses else list(self.correct_guesses_this_round)
        team = self.last_winning_team
        points = self.last_points_awarded if team else 0
        guessed_texts = {str(g.get('answer', '')).strip().lower() for g in guesses}
        answers = []
        if self.current_question is not None:
            for idx, answer in enumerate(self.current_question.answers):
                answers.append({
                    'index': idx,
                    'text': answer.text,
                    'points': answer.points,
                    'revealed': idx in self.revealed_answers,
                    'guessed': answer.text.strip().lower() in guessed_texts,
                })
        return {
            'roundNumber': self.current_round,
            'winningTeam': team,
            'winningTeamName': self.team_name(team),
            'pointsAwarded': points,
            'team1Delta': points if team == 1 else 0,
            'team2Delta': points if team == 2 else 0,
            'correctGuesses': guesses,
            'answers': answers,
            'totalAnswers': len(answers),
            'strikes': self.strikes,
            'team1Name': self.team1_name,
            'team2Name': self.team2_name,
            'team1Score': self.team1_score,
            'team2Score': self.team2_score,
            'currentRound': self.current_round,
            'totalRounds': self.total_rounds,
            'isFinalRound': self.current_round >= self.total_rounds,
        }

    def end_round(self, team: int, points: int,
                  correct_guesses: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        self.award_points(team, points)
        return self.round_summary(correct_guesses)

    def continue_from_summary(self) -> bool:
        """True when the game is over; the round is advanced by the next question load."""
        if self.current_round >= self.total_rounds:
            self.end_game()
            return True
        return False

    def final_scores(self) -> Dict[str, Any]:
        if self.team1_score > self.team2_score:
            winner = self.team1_name
        elif self.team2_score > self.team1_score:
            winner = self.team2_name
        else:
            winner = None
        return {
            'team1Name': self.team1_name,
            'team2Name': self.team2_name,
            'team1Score': self.team1_score,
            'team2Score': self.team2_score,
            'winner': winner,
        }

    def scores(self) -> Dict[str, int]:
        return {'team1Score': self.team1_score, 'team2Score': self.team2_score}

    def to_dict(self, include_answers: bool = True) -> Dict[str, Any]:
        question = None
        if self.current_question is not None:
            if include_answers:
                question = self.current_question.to_dict()
            else:
                question = self.current_question.to_public_dict(self.revealed_answers)
        return {
            'screen': self.screen,
            'team1Name': self.team1_name,
            'team2Name': self.team2_name,
            'team1Score': self.team1_score,
            'team2Score': self.team2_score,
            'totalRounds': self.total_rounds,
            'currentRound': self.current_round,
            'currentQuestion': question,
            'revealedAnswers': list(self.revealed_answers),
            'strikes': self.strikes,
            'timer': self.timer.to_dict(),
            'entryLog': list(self.entry_log),
            'roundPointsEarned': self.round_points_earned,
            'usedQuestionIndices': list(self.used_question_indices),
            'correctGuessesThisRound': list(self.correct_guesses_this_round),
            'lastWinningTeam': self.last_winning_team,
            'lastPointsAwarded': self.last_points_awarded,
        }
