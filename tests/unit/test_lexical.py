from snakemake_unit_tests.parsing.lexical import lexical_parse, split_comma_list


def test_comments_are_removed_outside_strings():
    lines = [
        "rule a:  # the first rule",
        "    input: 'x#y'  # trailing",
        "# whole line",
    ]

    assert lexical_parse(lines) == ["rule a:", "    input: 'x#y'", ""]


def test_output_keeps_one_entry_per_input_line():
    lines = ['"""', "module doc", '"""', "x = 1"]

    result = lexical_parse(lines)

    assert len(result) == len(lines)
    assert result == ["", "", "", "x = 1"]


def test_single_line_docstring_is_removed():
    assert lexical_parse(['"""Top level notes."""', "y = 2"]) == ["", "y = 2"]


def test_assigned_triple_quoted_string_is_joined_onto_first_line():
    lines = [
        "rule a:",
        "    shell:",
        '        """',
        "        echo hi",
        '        """',
    ]

    result = lexical_parse(lines)

    assert result[2] == '        """\n        echo hi\n        """'
    assert result[3] == ""
    assert result[4] == ""


def test_triple_quoted_string_after_string_line_is_kept():
    lines = [
        "rule a:",
        '    output: "x"',
        "    shell:",
        '        "echo a "',
        '        """echo b"""',
    ]

    assert lexical_parse(lines)[4] == '        """echo b"""'


def test_other_quote_kind_inside_string_is_literal():
    assert lexical_parse(["x = \"it's\"  # note"]) == ['x = "it\'s"']


def test_escaped_quote_does_not_close_string():
    assert lexical_parse(['x = "a\\"b#c"  # note']) == ['x = "a\\"b#c"']


def test_trailing_whitespace_is_stripped():
    assert lexical_parse(["x = 1   ", "   "]) == ["x = 1", ""]


def test_split_comma_list_accepts_commas_and_spaces():
    assert split_comma_list("a.txt, b.txt c.txt,,") == ["a.txt", "b.txt", "c.txt"]
    assert split_comma_list("   ") == []
