import re
from collections import Counter
from typing import List

STOP = set("""
a an and or the is are was were be been to for of in on at with by from as our your you we will can this that
using use used built implemented developed work working team teams role candidate ideal strong experience
years year plus including include etc must should have has able ability across within about who what
""".split())

TECH = {
    "python", "java", "c++", "c#", "typescript", "javascript", "react", "next.js", "node.js", "aws", "gcp",
    "azure", "kubernetes", "docker", "sql", "postgres", "postgresql", "redis", "go", "rust", "fastapi",
    "django", "flask", "graphql", "terraform", "kafka", "spark", "airflow", "pytorch", "tensorflow",
}


def tokenize(txt: str) -> List[str]:
    words = re.findall(r"[A-Za-z][A-Za-z0-9\-\+\.#]{1,}", (txt or "").lower())
    words = [w.rstrip(".") for w in words]
    return [w for w in words if w not in STOP and len(w) > 2 or w in TECH]


def extract_keywords(jd_text: str, top_k: int = 10) -> List[str]:
    toks = tokenize(jd_text)
    freq = Counter(toks)
    # tech terms first, then frequency, then first appearance
    first_seen = {}
    for i, t in enumerate(toks):
        first_seen.setdefault(t, i)
    ranked = sorted(freq.items(), key=lambda kv: (kv[0] not in TECH, -kv[1], first_seen[kv[0]]))
    return [w for w, _ in ranked[:top_k]]
