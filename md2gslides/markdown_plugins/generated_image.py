"""Fenced blocks that describe an image to be generated.

```
$$$ math {.background pad=20}
e^{i\\pi} + 1 = 0
$$$
```

produces a single ``generated_image`` token with ``info == "math"``, the
fence body as ``content`` and the ``{...}`` suffix parsed into ``attrs``.
"""
from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from mdit_py_plugins.attrs.parse import ParseError, parse

MARKER = "$"
MIN_MARKERS = 3


def _split_info(params: str):
    """Split ``math {.cls k=v}`` into ``("math", {...})``."""
    brace = params.find("{")
    if brace == -1:
        return params.strip(), {}
    info = params[:brace].strip()
    try:
        _, attrs = parse(params[brace:])
    except ParseError:
        return params.strip(), {}
    return info, attrs


def generated_image_plugin(md: MarkdownIt):
    def _generated_image(state: StateBlock, start_line: int, end_line: int, silent: bool):
        if state.sCount[start_line] - state.blkIndent >= 4:
            return False

        src = state.src
        pos = state.bMarks[start_line] + state.tShift[start_line]
        maximum = state.eMarks[start_line]

        markers = 0
        while pos + markers < maximum and src[pos + markers] == MARKER:
            markers += 1
        if markers < MIN_MARKERS:
            return False

        params = src[pos + markers:maximum].strip()
        if not params:
            return False

        if silent:
            return True

        next_line = start_line
        closed = False
        while True:
            next_line += 1
            if next_line >= end_line:
                break
            line_start = state.bMarks[next_line] + state.tShift[next_line]
            line_max = state.eMarks[next_line]
            if line_start < line_max and state.sCount[next_line] < state.blkIndent:
                break
            closing = src[line_start:line_max].strip()
            if len(closing) >= markers and closing == MARKER * len(closing):
                closed = True
                break

        content = state.getLines(start_line + 1, next_line, state.sCount[start_line], True)
        state.line = next_line + (1 if closed else 0)

        info, attrs = _split_info(params)
        token = state.push("generated_image", "", 0)
        token.info = info
        token.content = content
        token.markup = MARKER * markers
        token.map = [start_line, state.line]
        for key, value in attrs.items():
            token.attrSet(key, value)
        return True

    md.block.ruler.before(
        "fence",
        "generated_image",
        _generated_image,
        {"alt": ["paragraph", "reference", "blockquote", "list"]},
    )
