"""
Tests for ExclusionFilter.

Covers directory pattern pruning, the always-on hidden-name convention and
eager pattern validation.
"""

import re

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from csindex.core.config import ConfigurationError
from csindex.core.exclusion import (
    DEFAULT_EXCLUDE_PATTERNS,
    Decision,
    ExclusionFilter,
    ExclusionPatternError,
    is_hidden_name,
)

plain_name = st.from_regex(r"[a-z][a-z0-9_]{0,10}", fullmatch=True)
hidden_name = st.one_of(
    st.builds(lambda prefix, name: prefix + name, st.sampled_from([".", "#", "~"]), plain_name),
    st.builds(lambda name: name + "~", plain_name),
)


class TestDirectoryPatterns:
    """Directory patterns prune whole subtrees."""

    def test_baseline_prunes_dependency_and_vcs_dirs(self):
        f = ExclusionFilter.from_patterns()

        assert f.classify("/src/project/node_modules", is_dir=True) is Decision.SKIP_SUBTREE
        assert f.classify("/src/project/.git", is_dir=True) is Decision.SKIP_SUBTREE
        assert f.classify("/src/project/bazel-out", is_dir=True) is Decision.SKIP_SUBTREE
        assert f.classify("/home/u/go/pkg/mod", is_dir=True) is Decision.SKIP_SUBTREE
        assert f.classify("/src/project/venv", is_dir=True) is Decision.SKIP_SUBTREE

    def test_patterns_only_apply_to_directories(self):
        f = ExclusionFilter.from_patterns()

        assert f.classify("/src/project/node_modules", is_dir=False) is Decision.INCLUDE

    def test_patterns_match_anywhere_in_path(self):
        f = ExclusionFilter.from_patterns(["/generated"])

        assert f.classify("/src/generated", is_dir=True) is Decision.SKIP_SUBTREE
        assert f.classify("/src/generated_code/sub", is_dir=True) is Decision.SKIP_SUBTREE

    def test_matching_is_case_sensitive(self):
        f = ExclusionFilter.from_patterns()

        assert f.classify("/src/Node_Modules", is_dir=True) is Decision.INCLUDE

    def test_anchors_bind_to_full_path(self):
        f = ExclusionFilter.from_patterns([r"^/tmp/build$"])

        assert f.classify("/tmp/build", is_dir=True) is Decision.SKIP_SUBTREE
        assert f.classify("/src/tmp/build", is_dir=True) is Decision.INCLUDE
        assert f.classify("/tmp/build/sub", is_dir=True) is Decision.INCLUDE

    def test_extra_patterns_are_appended_after_baseline(self):
        f = ExclusionFilter.from_patterns(["/third_party$", "/out$"])

        sources = [p.source for p in f.patterns]
        assert sources == list(DEFAULT_EXCLUDE_PATTERNS) + ["/third_party$", "/out$"]

    def test_matching_pattern_reports_source(self):
        f = ExclusionFilter.from_patterns(["/third_party$"])

        pattern = f.matching_pattern("/src/third_party")
        assert pattern is not None
        assert pattern.source == "/third_party$"
        assert f.matching_pattern("/src/lib") is None


class TestHiddenNames:
    """Hidden-name convention, independent of the pattern set."""

    @pytest.mark.parametrize("name", [".git", "#lock", "file~", "~tmp"])
    def test_hidden_file_is_skipped_without_patterns(self, name):
        f = ExclusionFilter([])

        assert f.classify(f"/src/{name}", is_dir=False) is Decision.SKIP_ENTRY

    @pytest.mark.parametrize("name", [".git", "#lock", "file~", "~tmp"])
    def test_hidden_dir_prunes_subtree_without_patterns(self, name):
        f = ExclusionFilter([])

        assert f.classify(f"/src/{name}", is_dir=True) is Decision.SKIP_SUBTREE

    def test_only_final_component_is_inspected(self):
        f = ExclusionFilter([])

        assert f.classify("/home/u/.config/project/main.go", is_dir=False) is Decision.INCLUDE

    def test_tilde_inside_name_is_not_hidden(self):
        assert not is_hidden_name("a~b")
        assert not is_hidden_name("")
        assert is_hidden_name("backup~")

    @given(name=hidden_name, is_dir=st.booleans())
    @settings(max_examples=100)
    def test_hidden_names_never_included(self, name, is_dir):
        f = ExclusionFilter([])

        decision = f.classify(f"/corpus/dir/{name}", is_dir=is_dir)

        expected = Decision.SKIP_SUBTREE if is_dir else Decision.SKIP_ENTRY
        assert decision is expected

    @given(name=plain_name)
    @settings(max_examples=100)
    def test_plain_files_included(self, name):
        f = ExclusionFilter.from_patterns()

        assert f.classify(f"/corpus/dir/{name}", is_dir=False) is Decision.INCLUDE


class TestPatternValidation:
    """Malformed patterns are configuration errors raised at construction."""

    def test_invalid_pattern_raises_typed_error(self):
        with pytest.raises(ExclusionPatternError) as exc_info:
            ExclusionFilter.from_patterns(["/ok$", "(unclosed"])

        assert exc_info.value.pattern == "(unclosed"
        assert isinstance(exc_info.value.error, re.error)
        assert "invalid exclude pattern" in str(exc_info.value)

    def test_pattern_error_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ExclusionFilter.from_patterns(["[a-"])
