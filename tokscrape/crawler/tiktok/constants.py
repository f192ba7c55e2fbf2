"""TikTok page constants: selectors, fallback patterns, stealth and snapshot JS."""

import re

TIKTOK_DOMAIN = "tiktok.com"

# Ordered most specific first. The fetcher snapshots every selector listed here.
DESCRIPTION_SELECTORS = (
    'span[data-e2e="browse-video-desc"]',
    "h1",
    "span.tiktok-j2a19r-SpanText",
    'div[data-e2e="browse-video-desc"]',
    'div[class*="DivContainer"] > span',
)

LIKE_SELECTORS = (
    'strong[data-e2e="like-count"]',
    'span[data-e2e="like-count"]',
    'div[data-e2e="like-count"]',
    'button[data-e2e*="like"] span',
)

COMMENT_SELECTORS = (
    'strong[data-e2e="comment-count"]',
    'span[data-e2e="comment-count"]',
    'div[data-e2e="comment-count"]',
)

SHARE_SELECTORS = (
    'strong[data-e2e="share-count"]',
    'span[data-e2e="share-count"]',
    'div[data-e2e="share-count"]',
)

HASHTAG_SELECTOR = 'a[href*="/tag/"]'

ALL_TEXT_SELECTORS = (
    *DESCRIPTION_SELECTORS,
    *LIKE_SELECTORS,
    *COMMENT_SELECTORS,
    *SHARE_SELECTORS,
    HASHTAG_SELECTOR,
)

MEDIA_SELECTORS = ("video", "source")

# Any of these appearing means the video detail has rendered
READY_SELECTOR = 'span[data-e2e="browse-video-desc"], strong[data-e2e="like-count"]'

COUNT_FORMAT = re.compile(r"^\d+(\.\d+)?[KMBkmb]?$")

LIKES_PATTERN = re.compile(r"(\d+(\.\d+)?[KMB]?) likes", re.IGNORECASE)
COMMENTS_PATTERN = re.compile(r"(\d+(\.\d+)?[KMB]?) comments", re.IGNORECASE)
SHARES_PATTERN = re.compile(r"(\d+(\.\d+)?[KMB]?) shares", re.IGNORECASE)
VIEWS_PATTERN = re.compile(r"(\d+(\.\d+)?[KMB]?) views", re.IGNORECASE)
QUOTED_TEXT_PATTERN = re.compile(r'"([^"]{10,100})"')
HASHTAG_PATTERN = re.compile(r"#[a-zA-Z0-9_]+")
META_DATE_PATTERN = re.compile(r"\d{1,2}-\d{1,2}")
TEXT_DATE_PATTERN = re.compile(r"\b(\d{1,2})-(\d{1,2})\b")
AUDIO_PATTERN = re.compile(r"original sound - ([^.]+)")
USERNAME_PATTERN = re.compile(r"@([^/?#]+)")
VIDEO_ID_PATTERN = re.compile(r"/video/(\d+)")

AUTHOR_SUFFIX = " on TikTok"

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
]

# Chromium in Lambda/Vercel style sandboxes
SERVERLESS_LAUNCH_ARGS = [
    "--disable-setuid-sandbox",
    "--no-sandbox",
    "--single-process",
    "--no-zygote",
]

EXTRA_HTTP_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
}

# Injected via context.add_init_script() before any page loads.
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined
});

if (!window.chrome) { window.chrome = {}; }
if (!window.chrome.runtime) { window.chrome.runtime = {}; }

Object.defineProperty(navigator, 'plugins', {
    get: () => [1, 2, 3, 4, 5]
});

Object.defineProperty(navigator, 'languages', {
    get: () => ['en-US', 'en']
});
"""

# Collects everything the extractor reads in a single round trip.
# Argument: {textSelectors: [...], mediaSelectors: [...]}
JS_SNAPSHOT_PAGE = """(args) => {
    const texts = {};
    for (const selector of args.textSelectors) {
        try {
            texts[selector] = Array.from(document.querySelectorAll(selector))
                .map(el => el.innerText || '');
        } catch (e) {
            texts[selector] = [];
        }
    }

    const mediaSources = {};
    for (const selector of args.mediaSelectors) {
        mediaSources[selector] = Array.from(document.querySelectorAll(selector))
            .map(el => el.getAttribute('src') || '')
            .filter(src => src);
    }

    const meta = {};
    document.querySelectorAll('meta').forEach(tag => {
        const name = tag.getAttribute('name') || tag.getAttribute('property');
        const content = tag.getAttribute('content');
        if (name && content) meta[name] = content;
    });

    return {
        title: document.title || '',
        html: document.documentElement.outerHTML,
        text: document.body ? document.body.innerText : '',
        meta: meta,
        texts: texts,
        mediaSources: mediaSources,
    };
}"""
