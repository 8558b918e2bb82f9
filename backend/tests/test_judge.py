import pytest
import requests

from feud.errors import JudgeUnavailable
from feud.services.games.judge import OpenAIJudge, build_prompt, parse_verdict


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        if self.error:
            raise self.error
        return self.response


def completion(content):
    return {'choices': [{'message': {'content': content}}]}


def test_build_prompt_numbers_the_board():
    prompt = build_prompt('Name a fruit', ['Apple', 'Banana'], 'apple')
    assert '1. Apple\n2. Banana' in prompt
    assert 'Player\'s answer: "apple"' in prompt


def test_parse_verdict_strips_code_fences():
    verdict = parse_verdict('```json\n{"match": true, "matchedAnswer": "Apple", "confidence": "high", "reason": "x"}\n```')
    assert verdict.match is True
    assert verdict.matched_answer == 'Apple'


@pytest.mark.parametrize('raw', ['nope', '[1, 2]', {'match': 'perhaps'}])
def test_parse_verdict_rejects_garbage(raw):
    with pytest.raises(JudgeUnavailable):
        parse_verdict(raw)


def test_judge_posts_chat_completion():
    http = FakeSession(FakeResponse(200, completion('{"match": false, "matchedAnswer": "", "reason": "no"}')))
    judge = OpenAIJudge('sk-test', model='gpt-4o-mini', url='http://judge.local/v1', session=http)
    verdict = judge('Name a fruit', ['Apple'], 'rock')
    assert verdict.match is False
    sent = http.requests[0]
    assert sent['url'] == 'http://judge.local/v1'
    assert sent['headers']['Authorization'] == 'Bearer sk-test'
    assert sent['json']['model'] == 'gpt-4o-mini'
    assert sent['json']['temperature'] == 0.3
    assert sent['timeout'] is None


def test_judge_without_key_is_unavailable():
    with pytest.raises(JudgeUnavailable, match='not configured'):
        OpenAIJudge(None, session=FakeSession())('Q', ['A'], 'a')


def test_judge_transport_and_api_errors():
    down = OpenAIJudge('sk', session=FakeSession(error=requests.ConnectionError('refused')))
    with pytest.raises(JudgeUnavailable, match='unreachable'):
        down('Q', ['A'], 'a')

    rejected = OpenAIJudge('sk', session=FakeSession(FakeResponse(401, {'error': {'message': 'bad key'}})))
    with pytest.raises(JudgeUnavailable, match='bad key'):
        rejected('Q', ['A'], 'a')

    garbled = OpenAIJudge('sk', session=FakeSession(FakeResponse(200, ValueError('not json'))))
    with pytest.raises(JudgeUnavailable):
        garbled('Q', ['A'], 'a')

    empty = OpenAIJudge('sk', session=FakeSession(FakeResponse(200, {'choices': []})))
    with pytest.raises(JudgeUnavailable):
        empty('Q', ['A'], 'a')
