"""Tests for file filtering utilities."""

from govaudit_core.utils.code import is_code_file, is_excluded


class TestIsCodeFile:
    def test_rust_file_is_code(self):
        assert is_code_file("rs/replica/src/main.rs") is True

    def test_python_file_is_code(self):
        assert is_code_file("src/a.py") is True

    def test_markdown_is_not_code(self):
        assert is_code_file("README.md") is False

    def test_lock_file_is_not_code(self):
        assert is_code_file("Cargo.lock") is False

    def test_image_is_not_code(self):
        assert is_code_file("assets/logo.png") is False

    def test_case_insensitive(self):
        assert is_code_file("src/Main.RS") is True

    def test_custom_extensions_replace_builtin_set(self):
        assert is_code_file("src/a.py", [".rs"]) is False
        assert is_code_file("src/lib.rs", [".rs"]) is True

    def test_custom_extensions_case_insensitive(self):
        assert is_code_file("src/lib.rs", [".RS"]) is True


class TestIsExcluded:
    def test_glob_basename_match(self):
        assert is_excluded("gen/schema_pb2.py", ["*_pb2.py"]) is True

    def test_glob_full_path_match(self):
        assert is_excluded("src/generated/types.rs", ["src/generated/*.rs"]) is True

    def test_directory_prefix_at_root(self):
        assert is_excluded("third_party/lib.c", ["third_party/"]) is True

    def test_directory_prefix_nested(self):
        assert is_excluded("rs/vendor/x.rs", ["vendor"]) is True

    def test_no_false_positive_on_similar_name(self):
        assert is_excluded("vendored.rs", ["vendor/"]) is False

    def test_not_excluded_when_no_patterns(self):
        assert is_excluded("src/main.rs", []) is False
