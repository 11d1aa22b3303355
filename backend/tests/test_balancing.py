"""
Unit tests for training set class balancing.
"""
from collections import Counter

from catalog_vision.services.ml.balancing import balance_classes, balancing_target


def _items(label, count):
    return [f"{label}/{i}.jpg" for i in range(count)]


class TestBalancingTarget:
    """Median target with a lower bound"""
    
    def test_median_of_odd_count(self):
        """Test median of an odd number of classes"""
        assert balancing_target([10, 100, 55]) == 55
    
    def test_upper_median_of_even_count(self):
        """Test upper median of an even number of classes"""
        assert balancing_target([60, 70, 80, 90]) == 80
    
    def test_minimum_applies(self):
        """Test that small datasets are raised to the minimum target"""
        assert balancing_target([10, 20]) == 50
    
    def test_custom_minimum(self):
        """Test an explicit minimum target"""
        assert balancing_target([3, 4, 5], min_target=2) == 4


class TestBalanceClasses:
    """Under- and oversampling to the target"""
    
    def test_all_classes_reach_target(self):
        """Test that every class ends at the target size in the original label order"""
        data = {"a": _items("a", 10), "b": _items("b", 100), "c": _items("c", 55)}
        balanced = balance_classes(data, seed=1)
        assert {label: len(items) for label, items in balanced.items()} == {"a": 55, "b": 55, "c": 55}
        assert list(balanced) == ["a", "b", "c"]
    
    def test_undersampling_draws_without_replacement(self):
        """Test that large classes are cut without duplicates"""
        data = {"a": _items("a", 10), "b": _items("b", 100), "c": _items("c", 55)}
        balanced = balance_classes(data, seed=1)
        assert len(set(balanced["b"])) == 55
        assert set(balanced["b"]) <= set(data["b"])
    
    def test_oversampling_keeps_every_original(self):
        """Test that small classes keep all their items before padding"""
        data = {"a": _items("a", 10), "b": _items("b", 100), "c": _items("c", 55)}
        balanced = balance_classes(data, seed=1)
        assert balanced["a"][:10] == data["a"]
        assert set(balanced["a"]) == set(data["a"])
    
    def test_class_at_target_unchanged(self):
        """Test that a class already at the target is untouched"""
        data = {"a": _items("a", 10), "b": _items("b", 100), "c": _items("c", 55)}
        balanced = balance_classes(data, seed=1)
        assert balanced["c"] == data["c"]
    
    def test_minimum_target_oversamples_small_sets(self):
        """Test padding of every class up to the minimum target"""
        balanced = balance_classes({"x": _items("x", 3), "y": _items("y", 7)}, seed=0)
        assert len(balanced["x"]) == 50
        assert len(balanced["y"]) == 50
        assert max(Counter(balanced["x"]).values()) > 1
    
    def test_seed_is_reproducible(self):
        """Test identical output for identical seeds"""
        data = {"a": _items("a", 10), "b": _items("b", 100), "c": _items("c", 55)}
        assert balance_classes(data, seed=42) == balance_classes(data, seed=42)
    
    def test_empty_class_stays_empty(self):
        """Test that an empty class cannot be oversampled"""
        balanced = balance_classes({"a": [], "b": _items("b", 5)}, seed=0)
        assert balanced["a"] == []
        assert len(balanced["b"]) == 50
