"""Unit tests for post and review-reply generation."""
import pytest
from unittest.mock import AsyncMock, Mock

from app.services.content_generator_service import (
    GENERIC_NEGATIVE_REPLY,
    GENERIC_NEUTRAL_REPLY,
    GENERIC_POSITIVE_REPLY,
    NEGATIVE_REPLIES,
    NEUTRAL_REPLIES,
    POSITIVE_REPLIES,
    POST_TEMPLATES,
    ContentGeneratorService,
    _fill_template,
)


@pytest.fixture
def first_choice_rng():
    """Random stand-in that always picks the first option."""
    rng = Mock()
    rng.choice.side_effect = lambda options: options[0]
    return rng


@pytest.fixture
def mock_client():
    client = Mock()
    client.complete = AsyncMock(return_value="")
    client.provider = "Azure OpenAI"
    client.preview = "Endpoint: https://example.openai.azure.com, Deployment: gpt"
    return client


class TestPostContent:
    @pytest.mark.asyncio
    async def test_template_fallback_without_client(self, first_choice_rng):
        generator = ContentGeneratorService(rng=first_choice_rng)

        result = await generator.generate_post_content(
            "Sunrise Cafe", "Cafe", ["coffee", "pastries"]
        )

        assert "Sunrise Cafe" in result.content
        assert "coffee and pastries" in result.content
        assert result.call_to_action.action_type == "LEARN_MORE"

    @pytest.mark.asyncio
    async def test_comma_separated_keywords(self, first_choice_rng):
        generator = ContentGeneratorService(rng=first_choice_rng)

        result = await generator.generate_post_content("Sunrise Cafe", "Cafe", "coffee, pastries")

        assert "coffee and pastries" in result.content

    @pytest.mark.asyncio
    async def test_blank_business_name_uses_placeholder(self, mock_client, first_choice_rng):
        generator = ContentGeneratorService(mock_client, rng=first_choice_rng)

        result = await generator.generate_post_content("  ", "Cafe", [])

        assert "Your Business" in result.content
        mock_client.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_uses_llm_output(self, mock_client):
        mock_client.complete.return_value = "Fresh croissants every morning at Sunrise Cafe!"
        generator = ContentGeneratorService(mock_client)

        result = await generator.generate_post_content(
            "Sunrise Cafe", "Cafe", ["croissants"], "Austin"
        )

        assert result.content == "Fresh croissants every morning at Sunrise Cafe!"
        args = mock_client.complete.call_args
        assert args.args[0] == "post_content"
        assert "croissants" in args.args[2]
        assert "in Austin" in args.args[2]
        assert args.kwargs["max_tokens"] == 120

    @pytest.mark.asyncio
    async def test_empty_llm_output_falls_back(self, mock_client, first_choice_rng):
        generator = ContentGeneratorService(mock_client, rng=first_choice_rng)

        result = await generator.generate_post_content("Sunrise Cafe", "Cafe", ["coffee"])

        assert result.content.startswith("🌟 Thank you")
        assert "Sunrise Cafe" in result.content

    def test_every_template_fills_without_keywords(self):
        for template in POST_TEMPLATES:
            text = _fill_template(template, "Biz", "bakery", [])
            assert "{" not in text
            assert "Biz" in text

    def test_keyword_slot_defaults(self):
        text = _fill_template("Need {k0:quality service} and {k1:care}?", "Biz", "x", ["bread"])
        assert text == "Need bread and care?"


class TestReviewReply:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rating,replies",
        [(5, POSITIVE_REPLIES), (4, POSITIVE_REPLIES), (3, NEUTRAL_REPLIES), (1, NEGATIVE_REPLIES)],
    )
    async def test_fallback_tone_by_rating(self, first_choice_rng, rating, replies):
        generator = ContentGeneratorService(rng=first_choice_rng)

        reply = await generator.generate_review_reply("Sunrise Cafe", "text", rating)

        assert reply == replies[0].replace("{name}", "Sunrise Cafe")

    @pytest.mark.asyncio
    async def test_uses_llm_reply(self, mock_client):
        mock_client.complete.return_value = "Thanks for visiting Sunrise Cafe!"
        generator = ContentGeneratorService(mock_client)

        reply = await generator.generate_review_reply("Sunrise Cafe", "Great coffee", 5)

        assert reply == "Thanks for visiting Sunrise Cafe!"
        prompt = mock_client.complete.call_args.args[2]
        assert "5/5 stars" in prompt
        assert "grateful and professional" in prompt

    @pytest.mark.asyncio
    async def test_negative_prompt_tone(self, mock_client):
        mock_client.complete.return_value = "We're sorry."
        generator = ContentGeneratorService(mock_client)

        await generator.generate_review_reply("Sunrise Cafe", "Cold coffee", 2)

        prompt = mock_client.complete.call_args.args[2]
        assert "understanding and solution-focused" in prompt

    def test_render_reply_template(self):
        text = ContentGeneratorService.render_reply_template(
            "Hi {reviewerName}, thanks for the {rating} stars at {businessName}! \"{comment}\"",
            "Sunrise Cafe",
            None,
            5,
            "Great",
        )
        assert text == 'Hi valued customer, thanks for the 5 stars at Sunrise Cafe! "Great"'

    def test_generic_reply(self):
        assert ContentGeneratorService.generic_reply(5) == GENERIC_POSITIVE_REPLY
        assert ContentGeneratorService.generic_reply(3) == GENERIC_NEUTRAL_REPLY
        assert ContentGeneratorService.generic_reply(2) == GENERIC_NEGATIVE_REPLY


class TestStatus:
    def test_not_configured(self):
        assert ContentGeneratorService().status() == {
            "configured": False,
            "format": "None",
            "preview": "Not configured",
        }

    def test_configured(self, mock_client):
        status = ContentGeneratorService(mock_client).status()
        assert status["configured"] is True
        assert status["format"] == "Azure OpenAI"
