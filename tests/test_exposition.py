"""Tests for exposition text parsing."""

from __future__ import annotations

from slo.exposition import parse_exposition


class TestParseExposition:
    """Tests for parse_exposition."""

    def test_aggregates_label_variants_into_family(self) -> None:
        """Test labelled series are kept and summed under the bare name."""
        text = 'foo_total{pod="a"} 3\nfoo_total{pod="b"} 4\n'

        assert parse_exposition(text) == {
            'foo_total{pod="a"}': 3.0,
            'foo_total{pod="b"}': 4.0,
            "foo_total": 7.0,
        }

    def test_ignores_comments_and_blank_lines(self) -> None:
        """Test HELP/TYPE comments and blank lines are ignored."""
        text = (
            "# HELP up Whether the target is up\n"
            "# TYPE up gauge\n"
            "\n"
            "up 1\n"
        )

        assert parse_exposition(text) == {"up": 1.0}

    def test_empty_input_yields_empty_mapping(self) -> None:
        """Test empty and metric-free input parse to an empty mapping."""
        assert parse_exposition("") == {}
        assert parse_exposition("# only a comment\n\n") == {}

    def test_skips_unparseable_lines_only(self) -> None:
        """Test a malformed line does not abort the parse."""
        text = "good 1\nbad_value abc\nlonely\nalso_good 2.5\n"

        assert parse_exposition(text) == {"good": 1.0, "also_good": 2.5}

    def test_ignores_trailing_timestamp(self) -> None:
        """Test an optional sample timestamp is not taken as the value."""
        text = 'requests_total{code="200"} 12 1700000000000\n'

        assert parse_exposition(text) == {
            'requests_total{code="200"}': 12.0,
            "requests_total": 12.0,
        }

    def test_keeps_label_values_with_spaces(self) -> None:
        """Test series identity extends to the closing brace."""
        text = 'errors_total{reason="not found"} 2\n'

        assert parse_exposition(text) == {
            'errors_total{reason="not found"}': 2.0,
            "errors_total": 2.0,
        }

    def test_bare_and_labelled_samples_sum_regardless_of_order(self) -> None:
        """Test an unlabelled sample adds into the family total in any order."""
        labelled_first = 'jobs_total{pod="a"} 3\njobs_total 1\n'
        bare_first = 'jobs_total 1\njobs_total{pod="a"} 3\n'

        assert parse_exposition(labelled_first) == parse_exposition(bare_first)
        assert parse_exposition(labelled_first)["jobs_total"] == 4.0

    def test_parses_special_float_values(self) -> None:
        """Test +Inf and scientific notation values."""
        result = parse_exposition("a +Inf\nb 1.5e3\n")

        assert result["a"] == float("inf")
        assert result["b"] == 1500.0

    def test_unwraps_curl_verbose_output(self) -> None:
        """Test raw curl -v output is accepted."""
        text = (
            "> GET /metrics HTTP/1.1\n"
            "< HTTP/1.1 200 OK\n"
            "< Content-Type: text/plain\n"
            '< controller_runtime_reconcile_total{controller="job",result="success"} 10\n'
            'controller_runtime_reconcile_total{controller="job",result="error"} 2\n'
        )

        result = parse_exposition(text)

        assert result["controller_runtime_reconcile_total"] == 12.0
        assert "GET" not in result
        assert "HTTP/1.1" not in result
