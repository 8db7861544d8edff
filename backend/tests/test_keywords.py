from kryptohire.keywords import extract_keywords, tokenize


def test_tokenize_drops_stopwords_and_short_words():
    toks = tokenize("We are building APIs in Go and C++ with a strong team.")
    assert "we" not in toks and "strong" not in toks and "team" not in toks
    assert "go" in toks
    assert "c++" in toks
    assert "apis" in toks


def test_tokenize_strips_trailing_periods():
    assert tokenize("Deploys to Kubernetes.") == ["deploys", "kubernetes"]


def test_tech_terms_rank_before_frequent_words():
    jd = "Pipelines pipelines pipelines. Some Airflow and some Spark. Pipelines again."
    keywords = extract_keywords(jd)
    assert keywords[:2] == ["airflow", "spark"]
    assert keywords[2] == "pipelines"


def test_ties_keep_first_appearance():
    keywords = extract_keywords("rust docker redis")
    assert keywords == ["rust", "docker", "redis"]


def test_top_k_limits_results():
    jd = "python java react aws gcp azure docker redis kafka spark airflow"
    assert len(extract_keywords(jd, top_k=5)) == 5
    assert extract_keywords("", top_k=5) == []
