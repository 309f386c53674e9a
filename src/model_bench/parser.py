# parser.py
# Response parser: turns one raw assistant message into a Directive.
#
# Line-oriented and order-sensitive. Markers are literal, case-sensitive
# prefixes matched after trimming. No markdown or JSON parsing is attempted.
# A "Final Answer:" line always wins over any Action parsed earlier in the
# same message.

from model_bench.models import Directive, FinalAnswer, ToolCall, Unparseable

THOUGHT = "Thought:"
ACTION = "Action:"
ACTION_INPUT = "Action Input:"
FINAL_ANSWER = "Final Answer:"
OBSERVATION = "Observation:"

# Lines that close an open "Action Input:" block.
_INPUT_TERMINATORS = (THOUGHT, ACTION, FINAL_ANSWER, OBSERVATION)


def _after(marker: str, line: str) -> str:
    return line[len(marker):].strip()


def _capture_action_input(lines: list[str], start: int) -> str:
    """
    Collect the block opened by the "Action Input:" line at ``start``.

    The remainder of the marker line plus every following line, verbatim,
    up to (not including) the next marker line.
    """
    captured = [_after(ACTION_INPUT, lines[start].strip())]
    for line in lines[start + 1:]:
        if line.strip().startswith(_INPUT_TERMINATORS):
            break
        captured.append(line)
    return "\n".join(captured).strip()


def parse_agent_response(text: str) -> Directive:
    """
    Extract a ToolCall, FinalAnswer or Unparseable directive from ``text``.

    Repeated Thought or Action lines overwrite earlier ones. The final answer
    is sliced from the first occurrence of the marker in the raw text.
    """
    lines = text.split("\n")
    thought = ""
    action = ""
    action_input = ""

    for index, line in enumerate(lines):
        trimmed = line.strip()
        if trimmed.startswith(THOUGHT):
            thought = _after(THOUGHT, trimmed)
        elif trimmed.startswith(ACTION_INPUT):
            action_input = _capture_action_input(lines, index)
        elif trimmed.startswith(ACTION):
            action = _after(ACTION, trimmed)
        elif trimmed.startswith(FINAL_ANSWER):
            answer = text[text.index(FINAL_ANSWER) + len(FINAL_ANSWER):].strip()
            return FinalAnswer(thought=thought, answer=answer)

    if action:
        return ToolCall(thought=thought, action=action, action_input=action_input)
    return Unparseable(thought=thought, raw=text)
