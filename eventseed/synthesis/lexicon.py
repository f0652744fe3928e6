"""Static word lists used as raw material for synthesized records.

Nothing here is mutated at runtime. Tuples keep the lists hashable and make
``rng.choice`` indexing cheap in the worker processes.
"""

from __future__ import annotations

FIRST_NAMES: tuple[str, ...] = (
    "Aaliyah", "Aaron", "Abigail", "Adam", "Adrian", "Aiden", "Alan", "Alex",
    "Alice", "Amara", "Amelia", "Andre", "Anna", "Arjun", "Aria", "Ava",
    "Benjamin", "Bianca", "Blake", "Bruno", "Caleb", "Camila", "Carlos", "Chen",
    "Chloe", "Clara", "Daniel", "David", "Diego", "Elena", "Eli", "Emma",
    "Ethan", "Fatima", "Felix", "Finn", "Gabriel", "Grace", "Hana", "Harper",
    "Hugo", "Ibrahim", "Isaac", "Isabella", "Ivan", "Jack", "Jamie", "Jasmine",
    "Javier", "Jonas", "Julia", "Kai", "Kenji", "Layla", "Leo", "Liam",
    "Lucas", "Lucia", "Maya", "Mei", "Mia", "Mohammed", "Nadia", "Noah",
    "Nora", "Oliver", "Omar", "Priya", "Quinn", "Rafael", "Riley", "Rosa",
    "Samuel", "Sara", "Sofia", "Tariq", "Theo", "Uma", "Valentina", "Wei",
    "Xavier", "Yara", "Yusuf", "Zara", "Zoe",
)

LAST_NAMES: tuple[str, ...] = (
    "Abbott", "Ahmed", "Alvarez", "Anderson", "Bauer", "Bennett", "Brooks",
    "Castillo", "Chen", "Clarke", "Cohen", "Costa", "Davies", "Diaz", "Dubois",
    "Edwards", "Evans", "Fischer", "Flores", "Foster", "Garcia", "Gonzalez",
    "Gupta", "Hansen", "Harris", "Hernandez", "Hughes", "Ito", "Jensen",
    "Johnson", "Kim", "Kowalski", "Kumar", "Larsen", "Lee", "Lopez", "Martin",
    "Meyer", "Miller", "Moreau", "Murphy", "Nakamura", "Nguyen", "Novak",
    "Okafor", "Olsen", "Park", "Patel", "Perez", "Petrov", "Rossi", "Russo",
    "Santos", "Schmidt", "Silva", "Singh", "Smith", "Sousa", "Suzuki", "Tanaka",
    "Taylor", "Thompson", "Torres", "Wagner", "Walker", "Wang", "Weber",
    "Williams", "Wilson", "Yamamoto", "Young", "Zhang",
)

EMAIL_DOMAINS: tuple[str, ...] = (
    "example.com", "example.org", "example.net", "mail.test", "inbox.test",
    "corp.example", "users.example",
)

REFERRERS: tuple[str, ...] = (
    "https://google.com",
    "https://facebook.com",
    "https://youtube.com",
    "https://twitter.com",
    "https://instagram.com",
    "https://tiktok.com",
    "https://linkedin.com",
    "https://reddit.com",
    "https://pinterest.com",
    "https://yahoo.com",
    "https://bing.com",
    "https://amazon.com",
    "https://ebay.com",
    "https://wikipedia.org",
    "https://medium.com",
    "https://quora.com",
    "https://stackoverflow.com",
    "https://github.com",
    "https://netflix.com",
    "https://news.ycombinator.com",
)

# Dotted event name → page path it is usually emitted from.
EVENT_TYPE_PAGES: dict[str, str] = {
    "user.registered": "/registration",
    "user.login": "/login",
    "user.logout": "/logout",
    "user.updated": "/profile/edit",
    "order.created": "/order/create",
    "order.paid": "/order/confirm",
    "order.shipped": "/order/shipped",
    "order.delivered": "/order/tracking",
    "payment.processed": "/payment/complete",
    "payment.failed": "/payment/failed",
    "payment.refunded": "/payment/refund",
    "product.viewed": "/product/view",
    "product.added_to_cart": "/cart/add",
    "product.removed_from_cart": "/cart/remove",
    "email.sent": "/emails/sent",
    "email.opened": "/emails/opened",
    "email.clicked": "/emails/click",
    "notification.sent": "/notifications/sent",
    "notification.read": "/notifications/read",
    "api.request": "/api/request",
    "api.response": "/api/response",
    "api.error": "/api/error",
    "user.password_reset_requested": "/password/reset",
    "user.password_changed": "/password/change",
    "user.two_factor_enabled": "/security/2fa",
    "user.two_factor_disabled": "/security/2fa/disable",
    "user.deleted": "/account/delete",
    "user.suspended": "/account/suspend",
    "user.reactivated": "/account/reactivate",
    "user.subscription_started": "/subscription/start",
    "user.subscription_cancelled": "/subscription/cancel",
    "user.subscription_renewed": "/subscription/renew",
    "user.invited": "/invite/send",
    "user.invite_accepted": "/invite/accept",
    "user.feedback_submitted": "/feedback",
    "user.avatar_uploaded": "/profile/avatar",
    "user.preferences_updated": "/profile/preferences",
    "user.email_verified": "/email/verify",
    "user.login_failed": "/login/failed",
    "user.profile_viewed": "/profile/view",
    "user.notification_preferences_updated": "/profile/notifications",
    "user.newsletter_subscribed": "/newsletter/subscribe",
    "order.cancelled": "/order/cancel",
    "order.return_requested": "/order/return",
    "order.return_approved": "/order/return/approved",
    "order.return_rejected": "/order/return/rejected",
    "order.review_submitted": "/order/review",
    "order.invoice_generated": "/order/invoice",
    "payment.pending": "/payment/pending",
    "payment.disputed": "/payment/dispute",
    "payment.settled": "/payment/settled",
    "cart.viewed": "/cart/view",
    "cart.updated": "/cart/update",
    "cart.cleared": "/cart/clear",
    "checkout.started": "/checkout/start",
    "checkout.completed": "/checkout/complete",
    "product.review_submitted": "/product/review",
    "product.wishlisted": "/wishlist/add",
    "product.unwishlisted": "/wishlist/remove",
    "product.compared": "/product/compare",
    "product.shared": "/product/share",
    "product.restock_requested": "/product/restock",
    "product.stock_low": "/product/stock",
    "email.bounced": "/emails/bounced",
    "email.unsubscribed": "/emails/unsubscribe",
    "notification.dismissed": "/notifications/dismiss",
    "notification.failed": "/notifications/failure",
    "session.started": "/session/start",
    "session.expired": "/session/expired",
    "session.terminated": "/session/end",
    "admin.login": "/admin/login",
    "admin.logout": "/admin/logout",
    "admin.updated_user": "/admin/user/edit",
    "admin.deleted_user": "/admin/user/delete",
    "admin.generated_report": "/admin/reports",
    "admin.settings_updated": "/admin/settings",
    "file.uploaded": "/files/upload",
    "file.deleted": "/files/delete",
    "file.downloaded": "/files/download",
    "file.previewed": "/files/preview",
    "support.ticket_created": "/support/create",
    "support.ticket_closed": "/support/close",
    "support.ticket_reopened": "/support/reopen",
    "support.message_sent": "/support/message",
    "support.rating_submitted": "/support/rating",
    "search.performed": "/search",
    "search.filtered": "/search/filter",
    "search.sorted": "/search/sort",
    "settings.updated": "/settings",
    "language.changed": "/settings/language",
    "timezone.changed": "/settings/timezone",
    "api.token_generated": "/api/token",
    "api.token_revoked": "/api/token/revoke",
    "api.rate_limited": "/api/rate-limit",
    "cron.job_started": "/cron/start",
    "cron.job_finished": "/cron/end",
    "cron.job_failed": "/cron/failure",
    "webhook.received": "/webhooks/incoming",
    "webhook.verified": "/webhooks/verified",
    "webhook.failed": "/webhooks/failure",
}

EVENT_TYPE_NAMES: tuple[str, ...] = tuple(EVENT_TYPE_PAGES)

# Appended to base names once every base name has been used.
VARIANT_SUFFIXES: tuple[str, ...] = (
    "v2", "alt", "new", "extended", "pro", "lite", "plus", "max",
)

DEVICE_TYPES: tuple[str, ...] = ("mobile", "desktop", "tablet")

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
    "Mozilla/5.0 (X11; Linux x86_64)",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8)",
)

PRODUCT_CATEGORIES: tuple[str, ...] = (
    "electronics", "furniture", "clothing", "food", "automotive", "health",
    "toys", "office", "books", "garden", "sports", "beauty",
)

BUTTON_LABELS: tuple[str, ...] = (
    "Click me", "Buy now", "Add to cart", "Subscribe", "Learn more",
    "Sign up", "Continue", "Download", "Share", "Checkout",
)

CURRENCIES: tuple[str, ...] = ("USD", "EUR", "GBP", "PLN", "JPY")

METADATA_TEMPLATES: tuple[str, ...] = (
    "page_view", "click", "form_submit", "purchase", "session",
)
