"""Tests for annotation parsing and verification."""

import pytest

from pathspectre.analysis.cfg import GraphBuilder, call, compare, null, number
from pathspectre.core.constraints import ANY_NUMBER, NOT_NULL, NULL, ZERO, Decision
from pathspectre.execution.explorer import explore
from pathspectre.testing.annotations import (
    AnnotationError,
    ExpectedDecision,
    ExpectedStates,
    check_decision,
    check_states,
    extract_comments,
    parse,
    verify,
)


class TestParse:
    def test_single_state(self):
        assert parse("// PS x=NULL") == ExpectedStates(((("x", NULL),),))

    def test_prefix_is_optional(self):
        assert parse("x=NULL") == parse("// PS x=NULL")

    def test_alternatives(self):
        expectation = parse("x=ZERO || x=NULL")
        assert expectation.alternatives == ((("x", ZERO),), (("x", NULL),))
        assert expectation.variables == ("x",)

    @pytest.mark.parametrize("separator", [",", "&"])
    def test_several_variables(self, separator):
        expectation = parse(f"a=NOT_NULLY {separator} b=NUMBER")
        assert expectation.alternatives == ((("a", NOT_NULL), ("b", ANY_NUMBER)),)
        assert expectation.variables == ("a", "b")

    @pytest.mark.parametrize("text,decision", [
        ("always true", Decision.ALWAYS_TRUE),
        ("// always false", Decision.ALWAYS_FALSE),
        ("Always True", Decision.ALWAYS_TRUE),
    ])
    def test_decisions(self, text, decision):
        assert parse(text) == ExpectedDecision(decision)

    @pytest.mark.parametrize("text", ["x=MAYBE", "", "// PS", "x", "x=NULL ||"])
    def test_malformed(self, text):
        with pytest.raises(AnnotationError):
            parse(text)

    def test_is_a_value_error(self):
        assert issubclass(AnnotationError, ValueError)


class TestExtractComments:
    def test_finds_trailing_comments(self):
        source = "\n".join([
            "var x = null;",
            "if (a > b) { // always false",
            "foo(x); // PS x=NULL",
            "bar(); // an ordinary comment",
        ])
        assert extract_comments(source) == {2: "always false", 3: "PS x=NULL"}


def two_states():
    b = GraphBuilder("f", parameters=("a", "b"))
    b.assign("x", null(), line=1)
    with b.if_(compare(">", "a", "b"), line=2):
        b.assign("x", number(0), line=3)
    use = b.statement(call("foo", "x"), line=4)
    return b.build(), use


class TestChecks:
    def test_matching_alternatives(self):
        graph, use = two_states()
        result = explore(graph)
        assert check_states(result, use, parse("x=ZERO || x=NULL")) is None
        assert check_states(result, use, parse("x=NULL || x=ZERO")) is None

    def test_state_count_mismatch(self):
        graph, use = two_states()
        problem = check_states(explore(graph), use, parse("x=NULL"))
        assert problem.startswith("expected 1 distinct state(s), found 2")

    def test_states_that_do_not_pair_up(self):
        graph, use = two_states()
        problem = check_states(explore(graph), use, parse("x=NULL || x=NULL"))
        assert problem.startswith("states do not match one-to-one")

    def test_unreached_point(self):
        b = GraphBuilder("f")
        b.assign("x", null())
        with b.if_("x"):
            dead = b.statement(call("foo", "x"))
        result = explore(b.build())
        assert "no state" in check_states(result, dead, parse("x=NULL"))

    def test_decision(self):
        graph, _ = two_states()
        result = explore(graph)
        assert check_decision(result, 2, parse("always true")) == (
            "expected ALWAYS_TRUE, got UNDECIDABLE"
        )
        assert check_decision(result, 1, parse("always true")) == "branch was never evaluated"


class TestVerify:
    def test_comments_are_matched_by_line(self):
        graph, _ = two_states()
        comments = {4: "PS x=ZERO || x=NULL", 2: "always false"}
        mismatches = verify(graph, explore(graph), comments)
        assert len(mismatches) == 1
        assert mismatches[0].node_id == 2
        assert str(mismatches[0]).startswith("line 2: 'always false': expected ALWAYS_FALSE")

    def test_unparsable_annotation_raises(self):
        b = GraphBuilder("f")
        b.statement(call("foo"), expect="x=WHATEVER")
        graph = b.build()
        with pytest.raises(AnnotationError):
            verify(graph, explore(graph))
