"""Fixed-size chunking and keyword-overlap chunk selection.

Lexical baseline with no index: every call rescans all chunks.
"""

DEFAULT_CHUNK_SIZE = 1000


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split text into consecutive, non-overlapping slices of chunk_size characters."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


def extract_keywords(question: str) -> list[str]:
    """Case-folded whitespace tokens longer than three characters."""
    return [w for w in question.lower().split() if len(w) > 3]


def score_chunk(chunk: str, keywords: list[str]) -> int:
    # Substring containment: "report" matches "reported"
    chunk_lower = chunk.lower()
    return sum(1 for kw in keywords if kw in chunk_lower)


def rank_chunks(chunks: list[str], question: str) -> list[tuple[str, int]]:
    """Chunks paired with their score, best first; ties keep corpus order."""
    keywords = extract_keywords(question)
    scored = [(chunk, score_chunk(chunk, keywords)) for chunk in chunks]
    return sorted(scored, key=lambda item: item[1], reverse=True)


def select_context(
    corpus: str,
    question: str,
    *,
    chunk_size: int,
    top_k: int,
) -> str:
    """Join the top_k most relevant chunks of the corpus with blank lines.

    When no chunk matches any keyword, or the selection is blank, only the
    first chunk is used (a prefix of the corpus when there are no chunks).
    """
    chunks = chunk_text(corpus, chunk_size)
    if not chunks:
        return corpus[:chunk_size]

    ranked = rank_chunks(chunks, question)
    if ranked[0][1] == 0:
        return chunks[0]

    context = "\n\n".join(chunk for chunk, _ in ranked[:top_k])
    if not context.strip():
        context = chunks[0]
    return context
