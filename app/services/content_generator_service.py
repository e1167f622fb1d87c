"""Post and review-reply text generation with template fallbacks."""
import logging
import random
from typing import Optional, Union

from app.api.openai_content_client import OpenAIContentClient
from app.metrics import CONTENT_GENERATION_RESULTS
from app.models import PostContent
from app.models.automation import split_keywords

logger = logging.getLogger(__name__)

POST_SYSTEM_PROMPT = (
    "You are a professional social media content creator specializing in Google "
    "Business Profile posts. Generate engaging, keyword-focused content under 120 "
    "words maximum."
)

POST_USER_PROMPT = """Create an engaging Google Business Profile post for "{business_name}", a {category} business{location_clause}.

Key requirements:
- MUST incorporate these specific keywords naturally: {keyword_text}
- Use at least 3-5 of these keywords throughout the post
- Keep it under 120 words maximum
- Make it engaging and professional
- Include a clear call-to-action
- Don't use hashtags
- Write in a conversational tone
- Highlight what makes this business unique
- Make the keywords feel natural, not forced

Generate ONLY the post content, no additional text or formatting."""

REVIEW_SYSTEM_PROMPT = (
    "You are a professional customer service representative responding to Google "
    "Business reviews. Be authentic, helpful, and appropriately emotional. Keep "
    "responses under 120 words."
)

REVIEW_USER_PROMPT = """Generate a professional response to this Google Business review for "{business_name}":

Review ({rating}/5 stars): "{review_text}"

Requirements:
- Keep response under 120 words maximum
- Be {tone}
- {acknowledgement}
- Include the business name naturally
- Be authentic and personalized
- {closing}

Generate ONLY the response text, no additional formatting."""

POST_TEMPLATES = [
    "🌟 Thank you to all our amazing customers for making {name} what it is today! Your support means everything to us. Come experience our exceptional {all_and} - we're committed to providing quality service that exceeds your expectations. Visit us today!",
    "📍 Looking for {k0:quality service}? {name} is your trusted {category} destination! We specialize in {first3} and pride ourselves on customer satisfaction. Experience the difference that personalized service makes!",
    "💼 At {name}, we believe in building lasting relationships with our community. Our team is dedicated to providing exceptional {k0:service} with attention to detail. Come discover why customers choose us for {first2_and}!",
    "🔥 Exciting things are happening at {name}! We're proud to offer top-quality {k0:service} with {k1:professional excellence}. Our experienced team is here to help with all your {category} needs. Visit us today!",
    "👥 Our team at {name} is dedicated to exceeding your expectations. We combine {k0:quality} with {k1:professionalism} to deliver outstanding results. Experience why we're the preferred choice for {k2:reliable service}!",
    "✨ What makes {name} special? Our commitment to {k0:excellence} and {k1:customer care}! We're passionate about what we do and it shows in every interaction. Stop by and experience the {name} difference!",
    "💪 Ready for {k0:exceptional service}? {name} has been proudly serving our community with {first2_and}. Our experienced team is here to help you succeed. Contact us today to get started!",
    "🎯 Need {k0:professional service}? Look no further than {name}! We offer comprehensive {first3} solutions tailored to your needs. Let us show you why quality matters!",
    "🏆 {name} - where {k0:quality} meets {k1:service}! Our dedicated team is committed to providing exceptional {category} solutions. Join our satisfied customers and experience excellence today!",
    "🌈 Discover what makes {name} your best choice for {k0:quality service}! We combine expertise, reliability, and {k1:customer focus} to deliver results that matter. Visit us and see the difference!",
]

POSITIVE_REPLIES = [
    "Thank you so much for your wonderful review! We're thrilled that you had a great experience with {name}. Your feedback motivates our team to continue providing excellent service. We look forward to serving you again soon! 🌟",
    "We're delighted to hear about your positive experience! Thank you for taking the time to share your feedback about {name}. It means a lot to our team. We can't wait to welcome you back! ⭐",
    "Your kind words truly made our day! We're so happy we could provide you with exceptional service at {name}. Thank you for this amazing review. See you again soon! 😊",
]

NEUTRAL_REPLIES = [
    "Thank you for your feedback about {name}. We appreciate you taking the time to share your experience. We're always looking for ways to improve, and your input is valuable to us. Please don't hesitate to reach out if there's anything specific we can do better. 👍",
    "We appreciate your honest review of {name}. Your experience matters to us, and we'd love the opportunity to make it even better next time. Please feel free to contact us directly to discuss how we can improve. Thank you for giving us a chance! 🤝",
]

NEGATIVE_REPLIES = [
    "Thank you for bringing this to our attention. We sincerely apologize that your experience at {name} didn't meet your expectations. Your feedback is important to us, and we'd like the opportunity to make this right. Please contact us directly so we can discuss this further and improve. 🙏",
    "We're truly sorry to hear about your experience with {name}. This is not the level of service we strive to provide. We take your feedback seriously and would appreciate the chance to discuss this with you directly to ensure this doesn't happen again. Please reach out to us. 🤝",
]

GENERIC_POSITIVE_REPLY = (
    "Thank you for your wonderful review! We're thrilled you had a great experience "
    "with us. We look forward to serving you again soon!"
)
GENERIC_NEUTRAL_REPLY = (
    "Thank you for your feedback. We appreciate you taking the time to share your "
    "experience and we're always working to improve. Please feel free to contact us "
    "directly to discuss any concerns."
)
GENERIC_NEGATIVE_REPLY = (
    "Thank you for your feedback. We sincerely apologize that your experience didn't "
    "meet your expectations. We'd love the opportunity to make this right. Please "
    "contact us directly so we can address your concerns."
)


def _fill_template(template: str, name: str, category: str, keywords: list[str]) -> str:
    def kw(index: int, default: str) -> str:
        return keywords[index] if len(keywords) > index else default

    text = template
    for index in range(3):
        marker = f"{{k{index}:"
        while marker in text:
            start = text.index(marker)
            end = text.index("}", start)
            default = text[start + len(marker):end]
            text = text[:start] + kw(index, default) + text[end + 1:]

    return (
        text.replace("{all_and}", " and ".join(keywords))
        .replace("{first3}", ", ".join(keywords[:3]))
        .replace("{first2_and}", " and ".join(keywords[:2]))
        .replace("{category}", category)
        .replace("{name}", name)
    )


def normalize_keywords(keywords: Union[str, list[str], None]) -> list[str]:
    if isinstance(keywords, str):
        return split_keywords(keywords)
    return [k for k in (keywords or []) if k and k.strip()]


class ContentGeneratorService:
    """Drafts post text and review replies.

    Uses the LLM client when one is configured; otherwise, or when the call
    fails or returns nothing, falls back to fixed templates.
    """

    def __init__(
        self,
        client: Optional[OpenAIContentClient] = None,
        rng: Optional[random.Random] = None,
    ):
        self.client = client
        self.rng = rng or random.Random()

    @property
    def configured(self) -> bool:
        return self.client is not None

    def status(self) -> dict:
        if not self.client:
            return {"configured": False, "format": "None", "preview": "Not configured"}
        return {
            "configured": True,
            "format": self.client.provider,
            "preview": self.client.preview,
        }

    async def generate_post_content(
        self,
        business_name: str,
        category: str,
        keywords: Union[str, list[str], None],
        location_name: Optional[str] = None,
    ) -> PostContent:
        """Draft a post of at most ~120 words weaving in the given keywords."""
        keyword_list = normalize_keywords(keywords)
        category = category or "business"

        if not business_name or not business_name.strip():
            logger.warning("[ContentGenerator] Business name is required, using template content")
            return self.fallback_post_content("Your Business", category, keyword_list)

        if not self.client:
            return self.fallback_post_content(business_name, category, keyword_list)

        keyword_text = (
            ", ".join(keyword_list) if keyword_list else "quality service, customer satisfaction"
        )
        prompt = POST_USER_PROMPT.format(
            business_name=business_name,
            category=category,
            location_clause=f" in {location_name}" if location_name else "",
            keyword_text=keyword_text,
        )

        content = await self.client.complete(
            "post_content", POST_SYSTEM_PROMPT, prompt, max_tokens=120, temperature=0.7
        )
        if not content:
            logger.warning(
                f"[ContentGenerator] No content generated for {business_name}, using template"
            )
            return self.fallback_post_content(business_name, category, keyword_list)

        CONTENT_GENERATION_RESULTS.labels(kind="post", source="llm").inc()
        return PostContent(content=content)

    def fallback_post_content(
        self, business_name: str, category: str, keywords: list[str]
    ) -> PostContent:
        CONTENT_GENERATION_RESULTS.labels(kind="post", source="template").inc()
        template = self.rng.choice(POST_TEMPLATES)
        return PostContent(content=_fill_template(template, business_name, category, keywords))

    async def generate_review_reply(
        self, business_name: str, review_text: str, rating: int
    ) -> str:
        """Draft a reply whose tone follows the star rating."""
        if not self.client:
            return self.fallback_review_reply(business_name, rating)

        positive = rating >= 4
        prompt = REVIEW_USER_PROMPT.format(
            business_name=business_name,
            rating=rating,
            review_text=review_text,
            tone="grateful and professional" if positive else "understanding and solution-focused",
            acknowledgement=(
                "Thank them for their positive feedback"
                if positive
                else "Acknowledge their concerns and offer to resolve issues"
            ),
            closing="Invite them to return" if positive else "Offer to discuss offline if appropriate",
        )

        reply = await self.client.complete(
            "review_reply", REVIEW_SYSTEM_PROMPT, prompt, max_tokens=120, temperature=0.6
        )
        if not reply:
            return self.fallback_review_reply(business_name, rating)

        CONTENT_GENERATION_RESULTS.labels(kind="review_reply", source="llm").inc()
        return reply

    def fallback_review_reply(self, business_name: str, rating: int) -> str:
        CONTENT_GENERATION_RESULTS.labels(kind="review_reply", source="template").inc()
        if rating >= 4:
            replies = POSITIVE_REPLIES
        elif rating == 3:
            replies = NEUTRAL_REPLIES
        else:
            replies = NEGATIVE_REPLIES
        return self.rng.choice(replies).replace("{name}", business_name)

    @staticmethod
    def render_reply_template(
        template: str,
        business_name: str,
        reviewer_name: Optional[str],
        rating: int,
        comment: Optional[str],
    ) -> str:
        """Fill {businessName}, {reviewerName}, {rating} and {comment} placeholders."""
        return (
            template.replace("{businessName}", business_name)
            .replace("{reviewerName}", reviewer_name or "valued customer")
            .replace("{rating}", str(rating))
            .replace("{comment}", comment or "")
        )

    @staticmethod
    def generic_reply(rating: int) -> str:
        """Last-resort reply text used when no other reply could be produced."""
        if rating >= 4:
            return GENERIC_POSITIVE_REPLY
        if rating == 3:
            return GENERIC_NEUTRAL_REPLY
        return GENERIC_NEGATIVE_REPLY
