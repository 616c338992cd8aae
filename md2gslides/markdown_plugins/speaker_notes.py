from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock


def speaker_notes_plugin(md: MarkdownIt):
    """Markdown-it-py plugin that turns a paragraph beginning with `???` into
    an HTML comment block.  The compiler already treats `<!-- ... -->` blocks
    as speaker notes, so `???` is just a shorter way to write them.

    The note runs from the text after the marker up to the next blank line.
    """

    def _note_block(state: StateBlock, start_line: int, end_line: int, silent: bool):
        src = state.src
        line_start = state.bMarks[start_line] + state.tShift[start_line]
        max_pos = state.eMarks[start_line]

        # Indented code, not a note
        if state.sCount[start_line] - state.blkIndent >= 4:
            return False

        # Must start with ??? (optionally preceded by spaces)
        if not src.startswith('???', line_start):
            return False

        if silent:
            return True

        lines = [src[line_start + 3:max_pos].strip()]
        next_line = start_line + 1
        while next_line < end_line and not state.isEmpty(next_line):
            begin = state.bMarks[next_line] + state.tShift[next_line]
            lines.append(src[begin:state.eMarks[next_line]].strip())
            next_line += 1

        note_content = "\n".join(line for line in lines if line)

        token = state.push('html_block', '', 0)
        token.content = f"<!--\n{note_content}\n-->\n"
        token.map = [start_line, next_line]

        state.line = next_line
        return True

    # Insert before paragraph rule so it captures lines first
    md.block.ruler.before('paragraph', 'speaker_notes', _note_block)
