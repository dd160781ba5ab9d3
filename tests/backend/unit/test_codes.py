"""
Unit tests for services.codes module.
"""
from chatconnect.services.codes import CODE_ALPHABET, generate_code, is_valid_code, normalize_code


class TestGenerateCode:
    def test_code_is_six_uppercase_alphanumerics(self):
        for _ in range(50):
            code = generate_code()
            assert len(code) == 6
            assert all(c in CODE_ALPHABET for c in code)
            assert is_valid_code(code)

    def test_codes_vary(self):
        assert len({generate_code() for _ in range(20)}) > 1


class TestNormalizeCode:
    def test_trims_and_uppercases(self):
        assert normalize_code("  x7k2qt \n") == "X7K2QT"

    def test_none_becomes_empty(self):
        assert normalize_code(None) == ""


class TestIsValidCode:
    def test_rejects_wrong_length_and_characters(self):
        assert not is_valid_code("")
        assert not is_valid_code("ABC12")
        assert not is_valid_code("ABC1234")
        assert not is_valid_code("abc123")
        assert not is_valid_code("AB/123")
