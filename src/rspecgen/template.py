# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Instruction template shared by synthesis prompts and dataset records."""

PREAMBLE = (
    "Below is an instruction that describes a task, paired with an input that "
    "provides further context. Write a response that appropriately completes the request."
)
INSTRUCTION = (
    "Write an RSpec test for the following Rails method, "
    "using described_class as the main test subject."
)
INSTRUCTION_MARKER = "### Instruction:"
INPUT_MARKER = "### Input:"
RESPONSE_MARKER = "### Response:"


def render(method_code: str, response: str = "") -> str:
    """Render the four-section template.

    Args:
        method_code: Method source placed in the input section.
        response: Test text placed in the response section. Left empty when
            rendering a prompt for completion.

    Returns:
        Rendered template text.
    """
    text = (
        f"{PREAMBLE}\n\n"
        f"{INSTRUCTION_MARKER}\n{INSTRUCTION}\n\n"
        f"{INPUT_MARKER}\n{method_code}\n\n"
        f"{RESPONSE_MARKER}\n"
    )
    if response:
        text += f"{response}\n"
    return text
