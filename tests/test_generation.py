"""Tests for prompt building, answer generation and the relevance check."""
import httpx
import pytest

from conftest import FakeGenerator, ollama_client_for, request_json
from docqa.errors import GenerationError
from docqa.rag.generator import OllamaGenerator, extract_completion
from docqa.rag.prompt import NO_INFORMATION_ANSWER, PromptContext, build_prompt
from docqa.rag.safeguard import RelevanceChecker


def test_empty_contexts_return_sentinel():
    assert build_prompt("What is X?", []) == NO_INFORMATION_ANSWER


def test_prompt_renders_contexts_and_question():
    prompt = build_prompt(
        "How do I add a field?",
        [
            PromptContext(text="Use the data model page.", source="fields.md", section="Adding fields"),
            PromptContext(text="Fields have types.", source="types.md"),
        ],
    )

    assert prompt.startswith("You are a technical assistant")
    assert (
        "Source: fields.md, section: Adding fields\nUse the data model page."
        "\n\nSource: types.md\nFields have types."
    ) in prompt
    assert prompt.endswith("Question: How do I add a field?\nAnswer:")


@pytest.mark.anyio
async def test_generate_sends_options_and_reads_response():
    seen = []

    def handler(request):
        seen.append((request.url.path, request_json(request)))
        return httpx.Response(200, json={"response": "An answer."})

    generator = OllamaGenerator(model="dolphin3", client=ollama_client_for(handler))

    answer = await generator.generate("prompt", temperature=0.2, stop=["\n"], max_tokens=50)

    assert answer == "An answer."
    assert seen == [
        (
            "/api/generate",
            {
                "model": "dolphin3",
                "prompt": "prompt",
                "stream": False,
                "temperature": 0.2,
                "stop": ["\n"],
                "max_tokens": 50,
            },
        )
    ]


@pytest.mark.anyio
async def test_generate_omits_unset_options():
    seen = []

    def handler(request):
        seen.append(request_json(request))
        return httpx.Response(200, json={"response": "ok"})

    await OllamaGenerator(client=ollama_client_for(handler)).generate("p", model="m")

    assert seen == [{"model": "m", "prompt": "p", "stream": False, "temperature": 0.7}]


@pytest.mark.anyio
async def test_generate_accepts_alternate_completion_field():
    client = ollama_client_for(lambda r: httpx.Response(200, json={"generated_text": "alt"}))

    assert await OllamaGenerator(client=client).generate("p") == "alt"


@pytest.mark.anyio
async def test_generate_missing_completion_is_empty_string():
    client = ollama_client_for(lambda r: httpx.Response(200, json={"done": True}))

    assert await OllamaGenerator(client=client).generate("p") == ""


@pytest.mark.anyio
async def test_generate_error_carries_status_and_body():
    client = ollama_client_for(lambda r: httpx.Response(404, text="model 'x' not found"))

    with pytest.raises(GenerationError) as excinfo:
        await OllamaGenerator(client=client).generate("p", model="x")

    assert excinfo.value.status == 404
    assert excinfo.value.body == "model 'x' not found"
    assert "404" in str(excinfo.value)


def test_extract_completion_prefers_response():
    assert extract_completion({"response": "a", "generated_text": "b"}) == "a"
    assert extract_completion([]) == ""


@pytest.mark.anyio
@pytest.mark.parametrize("reply,expected", [("Yes", True), (" yes\n", True), ("no", False), ("yes.", False)])
async def test_relevance_checker(reply, expected):
    generator = FakeGenerator(answer=reply)
    checker = RelevanceChecker(generator=generator, model="guard")

    assert await checker.is_relevant("How do I configure roles?") is expected
    assert generator.options == [{"model": "guard", "temperature": 0, "stop": ["\n"], "max_tokens": 2}]
    assert "How do I configure roles?" in generator.prompts[0]
