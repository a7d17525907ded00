from __future__ import annotations

import io
import textwrap
from pathlib import Path

import pytest

from snakemake_unit_tests.parsing.entities import Block, BlockKind
from snakemake_unit_tests.parsing.lexical import lexical_parse
from snakemake_unit_tests.parsing.rule_block import (
    load_content_block,
    ordered_sub_block_names,
    print_contents,
    print_placeholder,
    render_block,
    report_rulesdot_rules,
)


def _parse(source: str, global_indentation: int = 0) -> list[Block]:
    lines = lexical_parse(textwrap.dedent(source).splitlines())
    blocks = []
    cursor = 0
    while cursor < len(lines):
        block, cursor = load_content_block(
            lines, Path("Snakefile"), global_indentation, cursor
        )
        if block is not None:
            blocks.append(block)
    return blocks


ALIGN_RULE = """
rule align:
    input:
        "a.fq",
        "b.fq",
    output: "out.bam"
    threads: 4
    shell:
        "bwa mem {input} > {output}"
"""


def test_rule_sub_blocks_are_parsed_in_order():
    (block,) = _parse(ALIGN_RULE)

    assert block.kind is BlockKind.RULE
    assert block.rule_name == "align"
    assert list(block.named_blocks) == ["input", "output", "threads", "shell"]
    assert block.named_blocks["output"] == '"out.bam"'
    assert block.named_blocks["threads"] == "4"
    assert block.named_blocks["input"] == '\n    "a.fq",\n    "b.fq",'


def test_rendered_rule_parses_back_to_equal_block():
    (block,) = _parse(ALIGN_RULE)

    rendered = render_block(block)
    (reparsed,) = _parse(rendered)

    assert rendered.startswith("rule align:\n    input:\n        \"a.fq\",\n")
    assert rendered.endswith("\n\n\n")
    assert reparsed == block


def test_checkpoint_and_docstring():
    (block,) = _parse(
        '''
        checkpoint split:
            """Split the input into chunks."""
            output: directory("chunks")
        '''
    )

    assert block.kind is BlockKind.CHECKPOINT
    assert block.docstring == '"""Split the input into chunks."""'
    assert block.named_blocks == {"output": 'directory("chunks")'}
    assert render_block(block).startswith(
        'checkpoint split:\n    """Split the input into chunks."""\n'
    )


@pytest.mark.parametrize(
    "header",
    ["use rule align as align_fast with:", "rule align_fast from align:"],
)
def test_derived_rule_headers(header):
    (block,) = _parse(f"{header}\n    threads: 8\n")

    assert block.kind is BlockKind.DERIVED_RULE
    assert block.rule_name == "align_fast"
    assert block.base_rule_name == "align"
    assert block.named_blocks == {"threads": "8"}
    assert render_block(block).startswith("use rule align as align_fast with:\n")


def test_code_chunk_stops_before_rule_and_include():
    blocks = _parse(
        """
        configfile: "config.yaml"
        samples = config["samples"]

        include: "rules/qc.smk"

        rule a:
            output: "a.txt"
        """
    )

    assert [block.kind for block in blocks] == [
        BlockKind.CODE,
        BlockKind.INCLUDE,
        BlockKind.RULE,
    ]
    assert blocks[0].code_chunk == ['configfile: "config.yaml"', 'samples = config["samples"]']
    assert blocks[1].get_recursive_filename() == "rules/qc.smk"
    with pytest.raises(ValueError):
        blocks[0].get_filename_expression()


def test_nested_rule_keeps_local_indentation():
    blocks = _parse(
        """
        if config["extra"]:
            rule extra:
                output: "e.txt"
        x = 1
        """
    )

    assert [block.kind for block in blocks] == [
        BlockKind.CODE,
        BlockKind.RULE,
        BlockKind.CODE,
    ]
    assert blocks[1].local_indentation == 4
    assert render_block(blocks[1]) == '    rule extra:\n        output: "e.txt"\n\n\n'


def test_duplicate_sub_block_is_rejected():
    with pytest.raises(ValueError, match="more than once"):
        _parse('rule a:\n    output: "x"\n    output: "y"\n')


def test_unparseable_rule_content_is_rejected():
    with pytest.raises(ValueError, match="cannot parse content"):
        _parse("rule a:\n    foo bar\n")


def test_closing_bracket_at_sub_block_level_continues_the_body():
    (block,) = _parse(
        'rule a:\n'
        '    input: expand(\n'
        '        "{s}.txt", s=["x","y"]\n'
        '    )\n'
        '    output: "a.txt"\n'
        '    shell: "cat {input} > {output}"\n'
    )

    assert block.named_blocks["input"] == 'expand(\n    "{s}.txt", s=["x","y"]\n)'
    assert block.named_blocks["output"] == '"a.txt"'
    assert render_block(block).startswith(
        'rule a:\n    input: expand(\n        "{s}.txt", s=["x","y"]\n    )\n'
        '    output: "a.txt"\n'
    )


def test_sub_block_emission_order():
    named = {"shell": "", "params": "", "output": "", "input": "", "log": ""}

    assert ordered_sub_block_names(named) == ["input", "output", "params", "log", "shell"]


def test_code_is_reindented_by_global_indentation():
    block = Block(code_chunk=["x = 1", "if y:", "    z = 2"], global_indentation=4)
    out = io.StringIO()

    print_contents(block, out)

    assert out.getvalue() == "    x = 1\n    if y:\n        z = 2\n"


def test_placeholder_uses_total_indentation():
    block = Block(rule_name="a", local_indentation=4, global_indentation=4)
    out = io.StringIO()

    print_placeholder(block, out)

    assert out.getvalue() == "        pass\n"


def test_rules_probe_names_checkpoints_collection():
    out = io.StringIO()

    report_rulesdot_rules(Block(rule_name="split", is_checkpoint=True), out)
    report_rulesdot_rules(Block(rule_name="align"), out)

    assert "    checkpoints.split\n" in out.getvalue()
    assert "    rules.align\n" in out.getvalue()
    assert 'print("Exception: " + str(exc))' in out.getvalue()
