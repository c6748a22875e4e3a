from unittest.mock import MagicMock, patch

import httpx
import pytest

from synapse.core.errors import CompletionServiceError, TranscriptionError
from synapse.core.generate.llm_client import LLMClient
from synapse.core.generate.prompt_builder import PromptBuilder
from synapse.core.transcribe.deepgram_client import DeepgramClient
from synapse.models.chat import ChatMessage


def mock_http_client(mock_client_cls, response=None, side_effect=None):
    client = MagicMock()
    client.__enter__.return_value = client
    if side_effect is not None:
        client.post.side_effect = side_effect
    else:
        client.post.return_value = response
    mock_client_cls.return_value = client
    return client


def completion_response(content):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


def message(role, content):
    return ChatMessage(message_id="m", session_id="s", role=role, content=content, timestamp="t")


# Prompts

def test_chat_system_prompt_with_and_without_timestamps():
    plain = PromptBuilder.chat_system_prompt(False)
    timed = PromptBuilder.chat_system_prompt(True)

    assert "Always cite the specific chunks" in plain
    assert "[MM:SS]" not in plain
    assert "[MM:SS] or [HH:MM:SS]" in timed
    assert timed.endswith("rather than making up information.")


def test_chat_user_prompt_layout():
    history = [message("user", "What is backprop?"), message("assistant", "It computes gradients.")]
    prompt = PromptBuilder.chat_user_prompt("And SGD?", "[Chunk 1]:\nSGD text", history)

    assert prompt.startswith("Previous conversation:\nUser: What is backprop?\nAssistant: It computes gradients.\n")
    assert "\nRelevant document excerpts:\n[Chunk 1]:\nSGD text\n\n" in prompt
    assert "Current question: And SGD?\n\n" in prompt
    assert prompt.endswith("based on the provided context and conversation history.")


def test_quiz_prompt_mentions_timestamp_questions_only_for_audio():
    system_msg, user_prompt = PromptBuilder.quiz_prompts("Podcast", "content", "hard", "Synthesis and evaluation", 10, True)
    assert "Include 3 timestamp-based questions" in system_msg
    assert '"display_time": "2:15"' in system_msg
    assert user_prompt.startswith("Document Title: Podcast")

    system_msg, _ = PromptBuilder.quiz_prompts("Notes", "content", "easy", "Basic recall", 5, False)
    assert "timestamp" not in system_msg
    assert "Generate 5 easy difficulty questions" in system_msg


# LLM client

@patch("synapse.core.generate.llm_client.httpx.Client")
def test_complete_posts_single_request(mock_client_cls):
    client = mock_http_client(mock_client_cls, completion_response("Grounded answer"))

    result = LLMClient().complete("system", "user", temperature=0.7, max_tokens=1000)

    assert result == "Grounded answer"
    assert client.post.call_count == 1
    payload = client.post.call_args.kwargs["json"]
    assert payload["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "user"}
    ]
    assert payload["temperature"] == 0.7
    assert payload["max_tokens"] == 1000
    assert "response_format" not in payload


@patch("synapse.core.generate.llm_client.httpx.Client")
def test_complete_json_mode(mock_client_cls):
    client = mock_http_client(mock_client_cls, completion_response("{}"))

    LLMClient().complete("system", "user", temperature=0.3, json_mode=True)

    payload = client.post.call_args.kwargs["json"]
    assert payload["response_format"] == {"type": "json_object"}
    assert "max_tokens" not in payload


@patch("synapse.core.generate.llm_client.httpx.Client")
def test_complete_does_not_retry_on_http_error(mock_client_cls):
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    response = MagicMock()
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "rate limited", request=request, response=httpx.Response(429, request=request)
    )
    client = mock_http_client(mock_client_cls, response)

    with pytest.raises(CompletionServiceError) as exc_info:
        LLMClient().complete("system", "user")

    assert "429" in str(exc_info.value)
    assert client.post.call_count == 1


@patch("synapse.core.generate.llm_client.httpx.Client")
def test_complete_wraps_transport_and_shape_errors(mock_client_cls):
    mock_http_client(mock_client_cls, side_effect=httpx.ConnectError("down"))
    with pytest.raises(CompletionServiceError):
        LLMClient().complete("system", "user")

    bad = MagicMock()
    bad.raise_for_status.return_value = None
    bad.json.return_value = {"choices": []}
    mock_http_client(mock_client_cls, bad)
    with pytest.raises(CompletionServiceError):
        LLMClient().complete("system", "user")


# Transcription

DEEPGRAM_BODY = {
    "results": {
        "channels": [{
            "alternatives": [{
                "transcript": "Hello world.",
                "words": [
                    {"word": "hello", "start": 0.08, "end": 0.4, "punctuated_word": "Hello"},
                    {"word": "world", "start": 0.48, "end": 0.9, "punctuated_word": "world."}
                ]
            }]
        }]
    }
}


@patch("synapse.core.transcribe.deepgram_client.httpx.Client")
def test_transcribe_remote_url(mock_client_cls):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = DEEPGRAM_BODY
    client = mock_http_client(mock_client_cls, response)

    transcript = DeepgramClient().transcribe("https://cdn.example.com/talk.mp3")

    assert transcript.transcript == "Hello world."
    assert [(w.text, w.start, w.end) for w in transcript.words] == [("hello", 0.08, 0.4), ("world", 0.48, 0.9)]
    kwargs = client.post.call_args.kwargs
    assert kwargs["json"] == {"url": "https://cdn.example.com/talk.mp3"}
    assert kwargs["params"]["model"] == "nova-2"
    assert kwargs["params"]["diarize"] == "true"
    assert kwargs["headers"]["Authorization"].startswith("Token ")


@patch("synapse.core.transcribe.deepgram_client.httpx.Client")
def test_transcribe_local_file_uploads_bytes(mock_client_cls, tmp_path):
    audio = tmp_path / "clip.wav"
    audio.write_bytes(b"RIFF....WAVE")
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = DEEPGRAM_BODY
    client = mock_http_client(mock_client_cls, response)

    DeepgramClient().transcribe(audio.as_uri(), mime_type="audio/wav")

    kwargs = client.post.call_args.kwargs
    assert kwargs["content"] == b"RIFF....WAVE"
    assert kwargs["headers"]["Content-Type"] == "audio/wav"


def test_transcript_without_alternatives_fails():
    with pytest.raises(TranscriptionError):
        DeepgramClient._parse_response({"results": {"channels": [{"alternatives": []}]}})
    with pytest.raises(TranscriptionError):
        DeepgramClient._parse_response({})


@patch("synapse.core.transcribe.deepgram_client.httpx.Client")
def test_transcribe_wraps_http_errors(mock_client_cls):
    mock_http_client(mock_client_cls, side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(TranscriptionError):
        DeepgramClient().transcribe("https://cdn.example.com/talk.mp3")
