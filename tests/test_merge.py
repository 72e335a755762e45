"""
Tests para la fusión de clusters cercanos.
"""

from collections import OrderedDict

from newsrank.ranker.merge import keyword_overlap, merge_nearby_buckets, should_merge
from newsrank.ranker.models import Cluster, Item


def make_cluster(signature, size=1, max_size=100):
    cluster = Cluster.found(signature, Item(title=f"{signature} 0"), [1.0], max_size=max_size)
    for i in range(1, size):
        cluster.append(Item(title=f"{signature} {i}"))
    return cluster


def registry(*clusters):
    return OrderedDict((cluster.id, cluster) for cluster in clusters)


class TestShouldMerge:
    """Tests para la regla de solapamiento."""

    def test_overlap_count(self):
        """Test del conteo de keywords compartidas."""
        assert keyword_overlap({"a", "b", "c"}, {"b", "c", "d"}) == 2

    def test_half_of_smaller_set_is_enough(self):
        """Test de solapamiento de la mitad del conjunto menor."""
        # min size 3 -> ceil(1.5) = 2 shared keywords required
        assert should_merge({"a", "b", "c", "d"}, {"a", "b", "x"})
        assert not should_merge({"a", "b", "c", "d"}, {"a", "x", "y"})

    def test_single_keyword_sets(self):
        """Test de conjuntos de una keyword."""
        assert should_merge({"a"}, {"a", "b", "c"})
        assert not should_merge({"a"}, {"b"})

    def test_empty_sets_never_merge(self):
        """Test de que conjuntos vacíos nunca se fusionan."""
        assert not should_merge(set(), {"a"})
        assert not should_merge(set(), set())


class TestMergeNearbyBuckets:
    """Tests para merge_nearby_buckets."""

    def test_larger_cluster_absorbs_smaller(self):
        """Test de que el cluster mayor absorbe al menor."""
        small = make_cluster("alpha|beta|delta", size=1)
        large = make_cluster("alpha|beta|gamma", size=2)
        clusters = registry(small, large)

        merge_nearby_buckets(clusters)

        assert list(clusters) == [large.id]
        assert large.size == 3
        assert [m.title for m in large.members][-1] == "alpha|beta|delta 0"

    def test_tie_keeps_first_in_scan_order(self):
        """Test de empate resuelto por orden de recorrido."""
        # Same length, "alpha|beta|delta" sorts before "alpha|beta|gamma"
        later = make_cluster("alpha|beta|gamma", size=2)
        first = make_cluster("alpha|beta|delta", size=2)
        clusters = registry(later, first)

        merge_nearby_buckets(clusters)

        assert list(clusters) == [first.id]
        assert first.size == 4

    def test_unrelated_clusters_stay(self):
        """Test de clusters sin relación que no se fusionan."""
        clusters = registry(make_cluster("apple|banana"), make_cluster("cherry|date"))
        merge_nearby_buckets(clusters)
        assert len(clusters) == 2

    def test_window_limits_comparisons(self):
        """Test de la ventana de comparación."""
        far = [
            make_cluster("aa|bb"),
            make_cluster("ccc|ddd"),
            make_cluster("eeee|ffff"),
            make_cluster("ggggg|hhhhh"),
            make_cluster("aa|bb|zzzzzzzz"),
        ]
        clusters = registry(*far)
        merge_nearby_buckets(clusters, window=3)
        assert len(clusters) == 5

        near = far[:3] + [make_cluster("aa|bb|zzzzzzzz")]
        clusters = registry(*near)
        merge_nearby_buckets(clusters, window=3)
        assert len(clusters) == 3

    def test_overflow_is_dropped_at_capacity(self):
        """Test de miembros descartados al fusionar con capacidad llena."""
        full = make_cluster("x|y", size=3, max_size=3)
        extra = make_cluster("x|y|z", size=2, max_size=3)
        clusters = registry(full, extra)

        merge_nearby_buckets(clusters)

        assert list(clusters) == [full.id]
        assert full.size == 3
        assert all(m.title.startswith("x|y ") for m in full.members)

    def test_survivors_keep_creation_order(self):
        """Test de orden de creación tras fusionar."""
        a = make_cluster("zeta|omega")
        b = make_cluster("apple|banana", size=2)
        c = make_cluster("apple|banana|cherry")
        d = make_cluster("kiwi")
        clusters = registry(a, b, c, d)

        merge_nearby_buckets(clusters)

        assert list(clusters) == [a.id, b.id, d.id]

    def test_rescore_runs_on_absorbing_cluster(self):
        """Test de recálculo del score al absorber."""
        a = make_cluster("alpha|beta", size=2)
        b = make_cluster("alpha|beta|gamma")
        clusters = registry(a, b)

        merge_nearby_buckets(clusters, rescore=lambda cluster: float(cluster.size))

        assert a.raw_score == 3.0

    def test_absorbed_cluster_stops_its_scan(self):
        """Test de que un cluster absorbido deja de comparar su ventana."""
        small = make_cluster("aa|bb")
        big = make_cluster("aa|bb|c", size=3)
        other = make_cluster("aa|bb|cc")
        clusters = registry(small, big, other)

        merge_nearby_buckets(clusters)

        # small is absorbed by big; big then absorbs other
        assert list(clusters) == [big.id]
        assert big.size == 5

    def test_returns_same_registry(self):
        """Test de que se devuelve el mismo registro."""
        clusters = registry(make_cluster("a"))
        assert merge_nearby_buckets(clusters) is clusters
