import json
from unittest.mock import MagicMock

import pytest

from synapse.core.errors import CompletionServiceError, ContentNotFoundError, DocumentNotFoundError, StorageError
from synapse.core.generate.study_aids import StudyAidGenerator
from synapse.models.chunk import ChunkMetadata, ContentChunk
from synapse.tests.helpers import make_document, unit_vector


def seed(chunk_store, count=7, timed=False, doc_id="doc1"):
    for i in range(count):
        meta = {"start_time": i * 75.0, "end_time": i * 75.0 + 75.0} if timed else {}
        chunk_store.add_chunk(doc_id, ContentChunk(
            index=i,
            content=f"Part {i} of the lecture.",
            metadata=ChunkMetadata(start_offset=i * 30, end_offset=i * 30 + 24, **meta)
        ), unit_vector(i))


def fake_llm(response):
    llm = MagicMock()
    llm.model = "openai/gpt-4-turbo"
    llm.complete.return_value = response
    return llm


def quiz_json(count):
    return json.dumps({"questions": [
        {
            "question": f"Question {i}?",
            "options": ["A) one", "B) two", "C) three", "D) four"],
            "correct_answer": 1,
            "explanation": "Because."
        }
        for i in range(count)
    ]})


def test_summary_is_stored_on_document(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)
    llm = fake_llm("A short summary.")

    result = StudyAidGenerator(document_store, chunk_store, llm).summarize("doc1")

    assert result.summary == "A short summary."
    assert result.chunk_count_used == 7
    assert result.model_used == "openai/gpt-4-turbo"
    assert document_store.get_document("doc1").summary == "A short summary."
    stored = document_store.get_generated_content("doc1", "summary")
    assert stored.content == "A short summary."
    assert llm.complete.call_args.kwargs["temperature"] == 0.3
    assert "Part 0 of the lecture." in llm.complete.call_args.args[1]


def test_missing_document_and_missing_chunks(document_store, chunk_store):
    generator = StudyAidGenerator(document_store, chunk_store, fake_llm("x"))

    with pytest.raises(DocumentNotFoundError):
        generator.summarize("nope")

    document_store.create_document(make_document())
    with pytest.raises(StorageError, match="No content chunks"):
        generator.flashcards("doc1")


def test_flashcards_are_parsed_and_truncated(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)
    cards = [{"question": f"Q{i}", "answer": f"A{i}"} for i in range(5)]
    llm = fake_llm(json.dumps({"flashcards": cards}))

    deck = StudyAidGenerator(document_store, chunk_store, llm).flashcards("doc1", count=3)

    assert [c.question for c in deck.flashcards] == ["Q0", "Q1", "Q2"]
    assert llm.complete.call_args.kwargs["json_mode"] is True
    assert document_store.get_generated_content("doc1", "flashcards").metadata == {"card_count": 3}


def test_unparseable_flashcards_fall_back_to_one_card(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)

    deck = StudyAidGenerator(document_store, chunk_store, fake_llm("not json")).flashcards("doc1")

    assert len(deck.flashcards) == 1
    assert "Lecture Notes" in deck.flashcards[0].question


def test_completion_errors_propagate(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)
    llm = fake_llm(None)
    llm.complete.side_effect = CompletionServiceError("down")

    with pytest.raises(CompletionServiceError):
        StudyAidGenerator(document_store, chunk_store, llm).quiz("doc1")


def test_medium_quiz_uses_most_chunks_and_numbers_questions(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)
    llm = fake_llm(quiz_json(12))

    quiz = StudyAidGenerator(document_store, chunk_store, llm).quiz("doc1", "medium")

    assert len(quiz.questions) == 8
    assert [q.id for q in quiz.questions[:3]] == ["q_0", "q_1", "q_2"]
    assert all(q.difficulty == "medium" for q in quiz.questions)
    assert quiz.is_audio_quiz is False
    assert quiz.has_timestamp_questions is False

    content = llm.complete.call_args.args[1]
    assert "Part 4 of the lecture." in content
    assert "Part 5 of the lecture." not in content


def test_hard_quiz_uses_all_chunks(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)
    llm = fake_llm(quiz_json(3))

    quiz = StudyAidGenerator(document_store, chunk_store, llm).quiz("doc1", "hard")

    assert len(quiz.questions) == 3
    assert "Part 6 of the lecture." in llm.complete.call_args.args[1]


def test_audio_quiz_labels_chunks_with_times(document_store, chunk_store):
    document_store.create_document(make_document(file_type="audio/mpeg"))
    seed(chunk_store, timed=True)
    llm = fake_llm(quiz_json(5))

    quiz = StudyAidGenerator(document_store, chunk_store, llm).quiz("doc1", "easy")

    system_prompt, content = llm.complete.call_args.args[:2]
    assert "[1:15 - 2:30]\nPart 1 of the lecture." in content
    assert "Include 1 timestamp-based questions" in system_prompt
    assert quiz.is_audio_quiz is True
    assert quiz.has_timestamp_questions is True


def test_audio_quiz_without_timestamps(document_store, chunk_store):
    document_store.create_document(make_document(file_type="audio/mpeg"))
    seed(chunk_store, timed=True)
    llm = fake_llm(quiz_json(5))

    quiz = StudyAidGenerator(document_store, chunk_store, llm).quiz("doc1", "easy", include_timestamps=False)

    assert "[0:00 - 1:15]" not in llm.complete.call_args.args[1]
    assert quiz.is_audio_quiz is True
    assert quiz.has_timestamp_questions is False


def test_bad_quiz_json_gives_fallback_question(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)

    quiz = StudyAidGenerator(document_store, chunk_store, fake_llm("{}")).quiz("doc1", "easy")

    assert len(quiz.questions) == 1
    assert quiz.questions[0].id == "q_0"
    assert quiz.questions[0].difficulty == "easy"
    assert document_store.get_generated_content("doc1", "quiz").metadata["question_count"] == 1


def test_unknown_difficulty_is_rejected(document_store, chunk_store):
    with pytest.raises(ValueError):
        StudyAidGenerator(document_store, chunk_store, fake_llm("x")).quiz("doc1", "extreme")


def test_latest_generated_content_is_returned(document_store, chunk_store):
    document_store.create_document(make_document())
    seed(chunk_store)
    llm = fake_llm("First summary.")
    generator = StudyAidGenerator(document_store, chunk_store, llm)

    with pytest.raises(ContentNotFoundError):
        generator.get_generated("doc1", "summary")

    generator.summarize("doc1")
    llm.complete.return_value = "Second summary."
    generator.summarize("doc1")

    assert generator.get_generated("doc1", "summary").content == "Second summary."
    with pytest.raises(DocumentNotFoundError):
        generator.get_generated("missing", "summary")
