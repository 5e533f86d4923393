"""
Chapter content extraction.

A chapter page's text lives in the <p> elements of one content container
(class "epcontent" on LightNovel WordPress sites). Some sites pad it with
ad blocks and with decoy paragraphs that an inline <style> hides from
readers; for those sites (grammar.strip_style_classes) both are removed
before the paragraphs are collected.

Input:  chapter page body + AdapterGrammar
Output: HTML string of the chapter's paragraphs, one per line
"""

import re

from .grammar import AdapterGrammar
from .listing import make_soup
from .logger import get_module_logger

logger = get_module_logger("chapter")

# Class selectors declared in a stylesheet: ".foo {" or ".foo,"
_STYLE_CLASS_RE = re.compile(r"\.([\w-]+)(?=\s*[,{])")


def hidden_classes(soup) -> set[str]:
    """Classes declared by <style> elements directly inside <article>."""
    classes = set()
    for article in soup.find_all("article"):
        for style in article.find_all("style", recursive=False):
            classes.update(_STYLE_CLASS_RE.findall(style.string or ""))
    return classes


def extract_content(html: str, grammar: AdapterGrammar) -> str:
    """
    Return the chapter body as paragraph HTML.

    An empty string means the content container was not found.
    """
    soup = make_soup(html)

    if grammar.strip_style_classes:
        classes = hidden_classes(soup)
        removed = 0
        for paragraph in soup.find_all("p"):
            if classes.intersection(paragraph.get("class") or []):
                paragraph.decompose()
                removed += 1
        if removed:
            logger.debug(f"Removed {removed} decoy paragraphs")

    container = soup.find(class_=grammar.content_class)
    if container is None:
        logger.warning(f"No '{grammar.content_class}' container on chapter page")
        return ""

    if grammar.strip_style_classes:
        for ad in container.find_all(class_="code-block"):
            ad.decompose()
    for script in container.find_all("script"):
        script.decompose()

    paragraphs = [str(p) for p in container.find_all("p")]
    logger.debug(f"Collected {len(paragraphs)} paragraphs")
    return "\n".join(paragraphs)
