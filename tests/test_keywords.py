"""
Tests para extracción de keywords TF-IDF y firmas de documentos.
"""

from newsrank.ranker.keywords import (
    DEFAULT_TOP_K,
    NO_KEYWORD,
    build_signature,
    extract_keywords,
    real_keywords,
    signature_keywords,
    term_frequencies,
)


class TestTermFrequencies:
    """Tests para la tabla de frecuencias."""

    def test_frequencies_in_first_occurrence_order(self):
        """Test de frecuencias en orden de aparición."""
        table = term_frequencies("Banana apple banana")
        assert list(table) == ["banana", "apple"]
        assert table["banana"] == 2 / 3
        assert table["apple"] == 1 / 3

    def test_stop_words_do_not_count(self):
        """Test de que las stop words no cuentan."""
        assert term_frequencies("the and of") == {}
        assert term_frequencies(None) == {}


class TestExtractKeywords:
    """Tests para extract_keywords."""

    def test_every_document_gets_fixed_slots(self):
        """Test de número fijo de slots por documento."""
        result = extract_keywords(["apple banana apple", "banana cherry", ""])
        assert len(result) == 3
        assert all(len(keywords) == DEFAULT_TOP_K for keywords in result)

    def test_padding_uses_sentinel(self):
        """Test del relleno con centinela."""
        keywords = extract_keywords(["apple banana"])[0]
        assert keywords[2:] == [NO_KEYWORD] * (DEFAULT_TOP_K - 2)

    def test_empty_document_is_all_sentinels(self):
        """Test de documento vacío relleno de centinelas."""
        result = extract_keywords(["apple", ""])
        assert result[1] == [NO_KEYWORD] * DEFAULT_TOP_K

    def test_empty_batch(self):
        """Test de lote vacío."""
        assert extract_keywords([]) == []

    def test_rare_terms_rank_first(self):
        """Test de términos poco frecuentes por delante de los comunes al lote."""
        # N=2: idf(apple)=idf(cherry)=ln(2/2)=0, idf(banana)=ln(2/3)<0
        result = extract_keywords(["apple banana apple", "banana cherry"])
        assert real_keywords(result[0]) == ["apple", "banana"]
        assert real_keywords(result[1]) == ["cherry", "banana"]

    def test_ties_keep_first_occurrence_order(self):
        """Test de empates en orden de aparición."""
        keywords = extract_keywords(["red green blue"], top_k=2)[0]
        assert keywords == ["red", "green"]

    def test_top_k_truncates(self):
        """Test de truncado a top_k."""
        doc = " ".join(f"term{i}" for i in range(20))
        keywords = extract_keywords([doc], top_k=5)[0]
        assert keywords == ["term0", "term1", "term2", "term3", "term4"]

    def test_deterministic(self):
        """Test de determinismo para la misma entrada."""
        docs = ["Stocks fall as inflation data surprises", "Inflation cools, stocks rally"]
        assert extract_keywords(docs) == extract_keywords(docs)


class TestSignatures:
    """Tests para build_signature y signature_keywords."""

    def test_sorted_and_deduplicated(self):
        """Test de firma ordenada y sin duplicados."""
        assert build_signature(["zeta", "alpha", NO_KEYWORD, "alpha"]) == "alpha|zeta"

    def test_independent_of_keyword_order(self):
        """Test de firma independiente del orden."""
        assert build_signature(["b", "a", "c"]) == build_signature(["c", "b", "a"])

    def test_falls_back_to_title(self):
        """Test de firma a partir del título."""
        keywords = [NO_KEYWORD] * DEFAULT_TOP_K
        assert build_signature(keywords, "Hello, World!") == "hello world"

    def test_title_is_truncated(self):
        """Test de título truncado."""
        title = "x" * 200
        assert build_signature([NO_KEYWORD], title) == "x" * 80
        assert build_signature([NO_KEYWORD], title, title_chars=10) == "x" * 10

    def test_no_title_fallback(self):
        """Test del fallback "no-title"."""
        assert build_signature([NO_KEYWORD]) == "no-title"
        assert build_signature([NO_KEYWORD], "") == "no-title"
        assert build_signature([NO_KEYWORD], "!!! ???") == "no-title"

    def test_signature_keywords(self):
        """Test de separación de la firma en keywords."""
        assert signature_keywords("alpha|beta") == ["alpha", "beta"]
        assert signature_keywords("") == []
        assert signature_keywords(None) == []
