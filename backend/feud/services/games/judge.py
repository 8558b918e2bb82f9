import json
import re
from typing import Any, Dict, List, Optional

import pydantic
import requests

from feud.errors import JudgeUnavailable
from feud.schemas import Verdict

SYSTEM_PROMPT = ('You are a helpful assistant that judges Family Feud answers. '
                 'Always respond with valid JSON only.')

PROMPT_TEMPLATE = """You are judging a Family Feud game. Given the question and the list of correct answers on the board, determine if the player's answer matches or is close enough to any of the correct answers.

Question: "{question}"

Correct answers on the board:
{board}

Player's answer: "{player_answer}"

Please respond with ONLY a JSON object in this exact format:
{{
  "match": true or false,
  "matchedAnswer": "the exact answer from the board that matches, or empty string if no match",
  "confidence": "high", "medium", or "low",
  "reason": "brief explanation"
}}

Be lenient - if the player's answer is essentially the same meaning or a close variation of a correct answer, consider it a match. For example, "car" matches "Car", "automobile" could match "Car", "lipstick" matches "Lipstick", etc."""

_FENCE_RE = re.compile(r'```(?:json)?\s*')


def build_prompt(question: str, board: List[str], player_answer: str) -> str:
    lines = '\n'.join(f"{i + 1}. {text}" for i, text in enumerate(board))
    return PROMPT_TEMPLATE.format(question=question, board=lines, player_answer=player_answer)


def parse_verdict(raw: Any) -> Verdict:
    """Coerce a judge reply (dict, JSON text or Verdict) into a Verdict."""
    if isinstance(raw, Verdict):
        return raw
    if isinstance(raw, str):
        cleaned = _FENCE_RE.sub('', raw).strip()
        try:
            raw = json.loads(cleaned)
        except ValueError as exc:
            raise JudgeUnavailable('Failed to parse judge response') from exc
    if not isinstance(raw, dict):
        raise JudgeUnavailable('Failed to parse judge response')
    try:
        return Verdict.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise JudgeUnavailable('Judge response has an unexpected shape') from exc


class OpenAIJudge:
    """Judge backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(self, api_key: Optional[str], model: str = 'gpt-4o-mini',
                 url: str = 'https://api.openai.com/v1/chat/completions',
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout or None
        self.http = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> 'OpenAIJudge':
        return cls(
            config.get('OPENAI_API_KEY'),
            model=config.get('JUDGE_MODEL', 'gpt-4o-mini'),
            url=config.get('JUDGE_URL', 'https://api.openai.com/v1/chat/completions'),
            timeout=config.get('JUDGE_TIMEOUT_SEC') or None,
        )

    def _request_body(self, question, board, player_answer) -> Dict[str, Any]:
        return {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': build_prompt(question, board, player_answer)},
            ],
            'temperature': 0.3,
            'max_tokens': 200,
        }

    def __call__(self, question: str, board: List[str], player_answer: str) -> Verdict:
        if not self.api_key:
            raise JudgeUnavailable('Answer judge is not configured')
        try:
            res = self.http.post(
                self.url,
                json=self._request_body(question, board, player_answer),
                headers={'Authorization': f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise JudgeUnavailable(f"Answer judge unreachable: {exc}") from exc

        try:
            body = res.json()
        except ValueError as exc:
            raise JudgeUnavailable('Failed to parse judge response') from exc
        if res.status_code != 200:
            message = None
            if isinstance(body, dict) and isinstance(body.get('error'), dict):
                message = body['error'].get('message')
            raise JudgeUnavailable(message or 'Judge request failed')

        try:
            content = body['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as exc:
            raise JudgeUnavailable('Judge response has an unexpected shape') from exc
        return parse_verdict(content.strip() if isinstance(content, str) else content)


def current_judge(app):
    return app.extensions['answer_judge']
