"""Location-specific demo reviews served when the reviews API is unavailable."""
import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.models import Review

# Demo locations keyed by slug or numeric Google location id
LOCATION_MAP = {
    "sitaram-guest-house": ("SITARAM GUEST HOUSE", "Guest House", "Varanasi"),
    "tree-house-retreat": ("Tree House Retreat Mohani", "Resort", "Kullu"),
    "kevins-bed-breakfast": ("KEVINS BED & BREAKFAST", "Bed & Breakfast", "Port Blair"),
    "17697790081864925086": ("SITARAM GUEST HOUSE", "Guest House", "Varanasi"),
    "9152028977863765725": ("Tree House Retreat Mohani", "Resort", "Kullu"),
    "15363724285382990222": ("KEVINS BED & BREAKFAST", "Bed & Breakfast", "Port Blair"),
    "1497453847846156772": ("Mountain View Lodge", "Lodge", "Shimla"),
    "17683209108307525705": ("Beach Paradise Resort", "Resort", "Goa"),
    "1852324590760696192": ("City Center Hotel", "Hotel", "Mumbai"),
    "17676898239868064955": ("Heritage Villa", "Villa", "Jaipur"),
    "14977377147025961194": ("Lake View Cottage", "Cottage", "Udaipur"),
    "9861967061576614941": ("Riverside Resort", "Resort", "Rishikesh"),
    "3835561564304183366": ("Desert Camp", "Camp", "Jaisalmer"),
}

# (rating, comment, author)
REVIEW_TEMPLATES = {
    "Guest House": [
        (5, "Amazing stay at this guest house! Clean rooms, friendly staff, and great location. Highly recommend for anyone visiting the area.", "Priya Sharma"),
        (4, "Good value for money. The guest house was clean and the staff was helpful. Would stay again.", "Raj Kumar"),
        (3, "Decent place to stay. Room was okay but could use some updates. Service was average.", "Sarah Wilson"),
    ],
    "Resort": [
        (5, "Absolutely stunning resort! The views are breathtaking and the amenities are top-notch. Perfect for a romantic getaway.", "Michael Brown"),
        (4, "Great resort with excellent facilities. The spa was amazing and food was delicious. Slightly expensive but worth it.", "Lisa Chen"),
        (2, "Expected more for the price. Some facilities were under maintenance and service was slow.", "David Singh"),
    ],
    "Bed & Breakfast": [
        (5, "Lovely B&B with personalized service! The breakfast was exceptional and hosts were incredibly welcoming.", "Emma Johnson"),
        (4, "Cozy and comfortable stay. Great homemade breakfast and nice atmosphere. Good value.", "Robert Miller"),
        (3, "Nice place but breakfast options were limited. Room was clean and comfortable though.", "Anjali Gupta"),
    ],
    "Hotel": [
        (5, "Excellent hotel with modern amenities. Professional staff, great location, and comfortable rooms.", "James Wilson"),
        (4, "Good business hotel. Clean rooms, reliable WiFi, and convenient location. Recommended.", "Neha Patel"),
        (2, "Hotel needs renovation. Room was outdated and service was below average for the price.", "Tom Anderson"),
    ],
}

REPLY_PROBABILITY = 0.4


def business_info(location_id: str) -> tuple[str, str, str]:
    """(name, type, city) for a demo location; unknown ids get a generic business."""
    return LOCATION_MAP.get(
        location_id, (f"Business {location_id[:8]}", "Business", "Demo City")
    )


def generate_mock_reviews(
    location_id: str,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> list[Review]:
    """Build 3 to 6 plausible reviews for a location.

    Templates follow the location's business type (Hotel when unknown).
    Reviews rated 4 or more carry an owner reply 40% of the time.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    name, business_type, _city = business_info(location_id)
    templates = REVIEW_TEMPLATES.get(business_type, REVIEW_TEMPLATES["Hotel"])

    reviews = []
    for i in range(rng.randint(3, 6)):
        rating, comment, author = templates[i % len(templates)]
        days_ago = rng.randint(1, 30)
        has_reply = rng.random() < REPLY_PROBABILITY
        created = (now - timedelta(days=days_ago)).isoformat()

        reply = None
        if has_reply and rating >= 4:
            reply = {
                "comment": (
                    f"Thank you for your wonderful review! We're thrilled you enjoyed your "
                    f"stay at {name}. We look forward to welcoming you back soon!"
                ),
                "updateTime": (now - timedelta(days=days_ago - 1)).isoformat(),
            }

        reviews.append(
            Review.model_validate(
                {
                    "name": f"accounts/{location_id}/locations/{location_id}/reviews/review{i + 1}",
                    "reviewer": {"displayName": author, "profilePhotoUrl": None},
                    "starRating": rating,
                    "comment": comment,
                    "createTime": created,
                    "updateTime": created,
                    "reply": reply,
                }
            )
        )

    return reviews
