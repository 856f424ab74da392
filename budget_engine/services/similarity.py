"""Description similarity scoring."""

import re


def normalize_description(value: str) -> str:
    """Normalize text for similarity comparison.

    Punctuation is deleted rather than replaced, so "NETFLIX.COM"
    becomes "netflixcom".
    """
    cleaned = re.sub(r"[^a-z0-9\s]", "", value.lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def similarity(a: str, b: str) -> float:
    """Similarity in [0, 1] from edit distance over normalized text."""
    norm_a = normalize_description(a)
    norm_b = normalize_description(b)
    longest = max(len(norm_a), len(norm_b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(norm_a, norm_b)) / longest


def descriptions_equal(a: str, b: str) -> bool:
    """Equal ignoring case and runs of whitespace."""
    return " ".join(a.lower().split()) == " ".join(b.lower().split())
