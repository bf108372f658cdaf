#!/usr/bin/env python3
"""
Article Excerpts - computed attributes with an asyncio queue

Articles store an excerpt and a word count derived from their text. Saving an
article recomputes them when the text changed; a bulk "reindex" pushes every
article through an AsyncioQueue, which recomputes and saves them in the
background.

Run:
    python examples/article_queue.py
"""

import asyncio
import logging
from typing import Optional

from sclerotium import ComputedModel, MemoryRepository, configure
from sclerotium.tasks import AsyncioQueue

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


class Article(ComputedModel):
    """A blog article with two stored, derived fields."""
    id: Optional[int] = None
    title: str = ""
    text: str = ""
    excerpt: Optional[str] = None
    word_count: int = 0

    def computeExcerptAttribute(self, text):
        return text[:40] + ("..." if len(text) > 40 else "")

    def compute_word_count_attribute(self, title, text):
        return len(title.split()) + len(text.split())


async def main():
    Article.use_repository(MemoryRepository())

    queue = AsyncioQueue(maxsize=100)
    configure(queue=queue)
    queue.start(workers=2)

    article = Article(title="Fungal networks", text="Mycorrhizal fungi trade nutrients with plants.")
    article.save()
    logger.info(f"Saved #{article.id}: {article.excerpt!r} ({article.word_count} words)")

    article.title = "Underground fungal networks"
    article.save()
    logger.info(f"Retitled #{article.id}: {article.word_count} words")

    # Saving without changes leaves the computed attributes alone
    article.save()

    logger.info("Reindexing in the background...")
    for key in range(1, 4):
        Article(title=f"Draft {key}", text="lorem ipsum " * key).save().recompute_async()

    await queue.drain()
    await queue.stop()

    for key in range(1, 5):
        stored = Article.load(key)
        logger.info(f"  #{stored.id} {stored.title!r}: {stored.word_count} words")


if __name__ == "__main__":
    asyncio.run(main())
