from __future__ import annotations

import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
import overlay_check_core as overlay_check  # noqa: E402
from overlay_check_core import BASE_DTB  # noqa: E402


def params_header(name: str, description: str) -> str:
    return "Params: " + name.ljust(24) + description


def param_line(name: str, description: str) -> str:
    return " " * 8 + name.ljust(24) + description


def entry(name: str, load: str | None, params: list[str]) -> list[str]:
    lines = [f"Name:   {name}", f"Info:   Support for {name}"]
    if load is not None:
        lines.append(f"Load:   {load}")
    lines.extend(params)
    lines.extend(["", ""])
    return lines


def messages(result: overlay_check.DocsParseResult) -> list[str]:
    return [item.message for item in result.diagnostics]


README = [
    "Introduction text is ignored.",
    "",
    "Name:   " + BASE_DTB,
    "Info:   Configures the base Raspberry Pi hardware",
    "Load:   <loaded automatically>",
    "Params:",
    param_line("audio", "Set to \"on\" to enable the onboard ALSA audio"),
    " " * 32 + "interface (default \"off\")",
    param_line("i2c_arm", "Set to \"on\" to enable the ARM's i2c interface"),
    "",
    "",
    "Name:   foo",
    "Info:   Foo sensor on i2c_arm, spread over",
    "        two lines of text",
    "Load:   dtoverlay=foo,<param>=<val>",
    params_header("addr<i>", "Address of channel i"),
    "",
    param_line("speed", "Bus speed in Hz"),
    "",
    "",
    "Name:   old",
    "Info:   Replaced by foo",
    "Load:   <Deprecated>",
    "",
    "",
    "Name:   simple",
    "Info:   No parameters",
    "Load:   dtoverlay=simple",
    "Params: <None>",
    "",
    "",
]


class DocsParserTests(unittest.TestCase):
    def test_parses_valid_catalog(self) -> None:
        result = overlay_check.parse_docs(README)
        self.assertEqual(messages(result), [])
        self.assertEqual(
            result.overlays,
            {
                BASE_DTB: ("audio", "i2c_arm"),
                "foo": ("addr<i>", "speed"),
                "simple": (),
            },
        )
        self.assertEqual(list(result.overlays), [BASE_DTB, "foo", "simple"])
        self.assertEqual(result.deprecated, ("old",))

    def test_params_are_sorted(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>[=<val>]",
            [params_header("zeta", "Last"), param_line("alpha", "First")],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(result.overlays["foo"], ("alpha", "zeta"))

    def test_entry_without_params_is_an_error(self) -> None:
        result = overlay_check.parse_docs(entry("foo", "dtoverlay=foo", []))
        self.assertEqual(messages(result), ["overlay 'foo' has no 'Params:' section"])
        self.assertEqual(result.diagnostics[0].line, 1)
        self.assertIn("foo", result.overlays)

    def test_two_blank_lines_close_one_entry(self) -> None:
        lines = entry("foo", "dtoverlay=foo", ["Params: <None>"]) + ["", "Info:   stray"]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["'Info:' outside an overlay entry"])

    def test_single_blank_line_is_insignificant(self) -> None:
        lines = ["Name:   foo", "", "Info:   Still foo", "Load:   dtoverlay=foo", "Params: <None>", "", ""]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays, {"foo": ()})

    def test_missing_separator_commits_previous_entry(self) -> None:
        lines = [
            "Name:   bar",
            "Load:   dtoverlay=bar",
            "Params: <None>",
            "",
            "Name:   foo",
            "Load:   dtoverlay=foo",
            "Params: <None>",
        ]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["missing blank lines before overlay 'foo'"])
        self.assertEqual(result.overlays, {"bar": (), "foo": ()})

    def test_names_must_ascend(self) -> None:
        lines = entry("foo", "dtoverlay=foo", ["Params: <None>"])
        lines += entry("bar", "dtoverlay=bar", ["Params: <None>"])
        lines += entry("bar", "dtoverlay=bar", ["Params: <None>"])
        result = overlay_check.parse_docs(lines)
        self.assertEqual(
            messages(result),
            [
                "overlay 'bar' is out of order (follows 'foo')",
                "overlay 'bar' is out of order (follows 'bar')",
            ],
        )

    def test_base_description_sorts_first(self) -> None:
        lines = entry("0-early", "dtoverlay=0-early", ["Params: <None>"])
        lines += entry(BASE_DTB, "<loaded automatically>", ["Params: <None>"])
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [f"overlay '{BASE_DTB}' is out of order (follows '0-early')"])

    def test_invalid_overlay_name(self) -> None:
        result = overlay_check.parse_docs(entry("-foo", None, ["Params: <None>"]))
        self.assertEqual(messages(result), ["invalid overlay name '-foo'"])
        self.assertEqual(result.overlays, {})

    def test_bad_label(self) -> None:
        lines = ["Name:   foo", "Note:   something", "Params: <None>", "", ""]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["bad label 'Note:'"])

    def test_name_padding(self) -> None:
        lines = ["Name:  foo", "Params: <None>", "", ""]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["'Name:' value must start in column 9"])

    def test_whitespace_and_length_checks(self) -> None:
        lines = [
            "Intro with trailing space ",
            "Intro\twith a tab",
            "x" * 81,
            " " + "y" * 90,
        ]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(
            messages(result),
            ["trailing whitespace", "tab character", "line is 81 characters long (limit 80)"],
        )
        self.assertEqual([item.line for item in result.diagnostics], [1, 2, 3])

    def test_deprecated_overlay_needs_no_params(self) -> None:
        result = overlay_check.parse_docs(entry("old", "<Deprecated>", []))
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays, {})
        self.assertEqual(result.deprecated, ("old",))

    def test_load_example_must_be_well_formed(self) -> None:
        result = overlay_check.parse_docs(entry("foo", "dtoverlay foo", ["Params: <None>"]))
        self.assertEqual(messages(result), ["malformed Load example 'dtoverlay foo'"])

    def test_load_example_must_name_the_overlay(self) -> None:
        result = overlay_check.parse_docs(entry("foo", "dtoverlay=bar", ["Params: <None>"]))
        self.assertEqual(messages(result), ["Load example names 'bar', expected 'foo'"])

    def test_none_when_parameters_expected(self) -> None:
        result = overlay_check.parse_docs(entry("foo", "dtoverlay=foo,<param>=<val>", ["Params: <None>"]))
        self.assertEqual(messages(result), ["'foo' has no parameters but its Load example declares some"])

    def test_parameters_when_none_expected(self) -> None:
        result = overlay_check.parse_docs(entry("foo", "dtoverlay=foo", [params_header("speed", "Bus speed")]))
        self.assertEqual(messages(result), ["'foo' lists parameters but its Load example declares none"])
        self.assertEqual(result.overlays["foo"], ("speed",))

    def test_invalid_parameter_name(self) -> None:
        result = overlay_check.parse_docs(
            entry("foo", "dtoverlay=foo,<param>=<val>", [params_header("bad.name", "Nope")])
        )
        self.assertEqual(messages(result), ["invalid parameter name 'bad.name'"])
        self.assertEqual(result.overlays["foo"], ())

    def test_description_column_must_match(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [params_header("addr", "Address"), " " * 8 + "speed" + " " * 17 + "Bus speed"],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["description of 'speed' starts in column 31, expected 33"])

    def test_continuation_between_columns_is_an_error(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [params_header("addr", "Address"), " " * 10 + "misplaced text"],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["continuation line indented 10 columns, expected 8 or 32"])

    def test_parameter_line_below_eight_columns(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [params_header("addr", "Address"), "    speed"],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["parameter line indented 4 columns, expected 8"])

    def test_trailing_note_ends_parameter_collection(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [
                params_header("addr", "Address"),
                "",
                "        Note: the sensor needs a pull-up",
                param_line("notaparam", "Ignored"),
                "        See the datasheet for more details",
            ],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays["foo"], ("addr",))

    def test_prose_with_single_space_gap_ends_collection(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [params_header("addr", "Address"), "        The defaults suit most boards"],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays["foo"], ("addr",))

    def test_bare_parameter_with_description_below(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [
                "Params:",
                "        a_rather_long_parameter_name_here",
                " " * 32 + "Description on its own line",
                param_line("speed", "Bus speed"),
            ],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays["foo"], ("a_rather_long_parameter_name_here", "speed"))

    def test_duplicate_parameter(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [params_header("addr", "Address"), param_line("addr", "Again")],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["duplicate parameter 'addr' for overlay 'foo'"])

    def test_unindented_text_inside_entry(self) -> None:
        lines = ["Name:   foo", "stray text", "Params: <None>", "", ""]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["unexpected unindented text inside an overlay entry"])

    def test_open_entry_is_committed_at_end_of_input(self) -> None:
        lines = ["Name:   foo", "Load:   dtoverlay=foo", "Params: <None>"]
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays, {"foo": ()})

    def test_load_example_with_bare_param_marker(self) -> None:
        lines = entry("foo", "dtoverlay=foo,<param>", [params_header("speed", "Bus speed")])
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays["foo"], ("speed",))

    def test_bare_param_marker_expects_parameters(self) -> None:
        result = overlay_check.parse_docs(entry("foo", "dtoverlay=foo,<param>", ["Params: <None>"]))
        self.assertEqual(messages(result), ["'foo' has no parameters but its Load example declares some"])

    def test_first_parameter_below_bare_header_sets_description_column(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            ["Params:", "        speed Bus speed in Hz", "        addr  Address"],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays["foo"], ("addr", "speed"))

    def test_parameters_below_bare_header_when_none_expected(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo",
            ["Params:", param_line("speed", "Bus speed"), param_line("addr", "Address")],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), ["'foo' lists parameters but its Load example declares none"])
        self.assertEqual(result.diagnostics[0].line, 5)
        self.assertEqual(result.overlays["foo"], ("addr", "speed"))

    def test_wildcard_parameter_grammar(self) -> None:
        lines = entry(
            "foo",
            "dtoverlay=foo,<param>=<val>",
            [params_header("cs<n>-<m>_pin", "Chip selects"), param_line("port<a>", "Port letter")],
        )
        result = overlay_check.parse_docs(lines)
        self.assertEqual(messages(result), [])
        self.assertEqual(result.overlays["foo"], ("cs<n>-<m>_pin", "port<a>"))


if __name__ == "__main__":
    unittest.main()
