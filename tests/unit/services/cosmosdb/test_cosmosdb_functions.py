"""
Unit tests for built-in query functions.
"""

import pytest

from localcosmos.services.cosmosdb.document import MISSING
from localcosmos.services.cosmosdb.exceptions import FunctionArgumentError, UnsupportedFunctionError
from localcosmos.services.cosmosdb.functions import FunctionLibrary, FunctionRegistry, FunctionSignature


class TestStringFunctions:
    """Tests for CONTAINS and STARTSWITH."""

    def test_contains_case_sensitive_by_default(self):
        """Test CONTAINS without flag."""
        assert FunctionLibrary.contains("John Doe", "Doe")
        assert not FunctionLibrary.contains("JOHN DOE", "john")

    def test_contains_ignore_case(self):
        """Test CONTAINS with ignore-case flag."""
        assert FunctionLibrary.contains("JOHN DOE", "john", True)
        assert not FunctionLibrary.contains("JOHN DOE", "john", False)

    def test_contains_null_or_missing(self):
        """Test CONTAINS on absent values."""
        assert not FunctionLibrary.contains(None, "a")
        assert not FunctionLibrary.contains(MISSING, "a")
        assert not FunctionLibrary.contains("abc", None)

    def test_contains_non_string(self):
        """Test CONTAINS uses text form of non-strings."""
        assert FunctionLibrary.contains(12345, "234")

    def test_startswith(self):
        """Test STARTSWITH with and without flag."""
        assert FunctionLibrary.startswith("Alice", "Al")
        assert not FunctionLibrary.startswith("Alice", "al")
        assert FunctionLibrary.startswith("Alice", "al", True)
        assert not FunctionLibrary.startswith(MISSING, "a")


class TestArrayContains:
    """Tests for ARRAY_CONTAINS."""

    def test_found(self):
        """Test element present."""
        assert FunctionLibrary.array_contains(["red", "green"], "green")

    def test_case_insensitive(self):
        """Test comparison ignores case."""
        assert FunctionLibrary.array_contains(["Red"], "RED")

    def test_text_forms(self):
        """Test numbers match by text form."""
        assert FunctionLibrary.array_contains([1, 2, 3], 2)
        assert FunctionLibrary.array_contains(["2"], 2)

    def test_not_an_array(self):
        """Test non-array target yields false."""
        assert not FunctionLibrary.array_contains("red", "red")
        assert not FunctionLibrary.array_contains(MISSING, "red")

    def test_missing_search(self):
        """Test absent search value yields false."""
        assert not FunctionLibrary.array_contains(["a"], MISSING)


class TestTypeChecks:
    """Tests for IS_NULL and IS_DEFINED."""

    def test_is_null(self):
        """Test IS_NULL for null, missing and values."""
        assert FunctionLibrary.is_null(None)
        assert FunctionLibrary.is_null(MISSING)
        assert not FunctionLibrary.is_null(0)

    def test_is_defined(self):
        """Test IS_DEFINED treats explicit null as defined."""
        assert FunctionLibrary.is_defined(None)
        assert FunctionLibrary.is_defined("")
        assert not FunctionLibrary.is_defined(MISSING)


class TestFunctionRegistry:
    """Tests for function registry."""

    def test_builtins_registered(self):
        """Test built-in functions are listed."""
        registry = FunctionRegistry()

        assert registry.list_functions() == [
            "ARRAY_CONTAINS", "CONTAINS", "IS_DEFINED", "IS_NULL", "STARTSWITH",
        ]

    def test_case_insensitive_lookup(self):
        """Test lookup ignores case."""
        registry = FunctionRegistry()

        assert registry.call("contains", ["abc", "b"])
        assert registry.lookup("Is_Defined") is not None

    def test_unknown_function(self):
        """Test unknown function raises."""
        registry = FunctionRegistry()

        with pytest.raises(UnsupportedFunctionError) as exc_info:
            registry.call("UPPER", ["a"])

        assert exc_info.value.function_name == "UPPER"

    def test_wrong_arity(self):
        """Test argument count validation."""
        registry = FunctionRegistry()

        with pytest.raises(FunctionArgumentError) as exc_info:
            registry.call("CONTAINS", ["a"])

        assert "expects (2-3 args), got 1" in str(exc_info.value)

        with pytest.raises(FunctionArgumentError):
            registry.call("IS_NULL", [1, 2])

    def test_register_custom(self):
        """Test registering an extra function."""
        registry = FunctionRegistry()
        registry.register("ENDSWITH", lambda s, suffix: str(s).endswith(suffix), FunctionSignature(2, 2))

        assert registry.call("endswith", ["hello", "lo"])

    def test_signature_repr(self):
        """Test signature formatting."""
        assert repr(FunctionSignature(1, 1)) == "(1 args)"
        assert repr(FunctionSignature(2, 3)) == "(2-3 args)"
