"""
Ways of asking the user for a choice or a code.

ConsolePrompter is used by the command line entry point and talks on stderr,
leaving stdout for the assertion. ScriptedPrompter replays answers that were
supplied up front (HTTP API, tests).
"""

import sys

from errors import PromptCancelledError


class Prompter:
    def choose(self, prompt, options):
        """Return the index of the chosen option."""
        raise NotImplementedError

    def string_required(self, prompt):
        """Return a non-empty string."""
        raise NotImplementedError


class ConsolePrompter(Prompter):
    def __init__(self, input_fn=input, out=None):
        self._input = input_fn
        self._out = out or sys.stderr

    def _say(self, msg, end='\n'):
        print(msg, end=end, file=self._out, flush=True)

    def _read(self, prompt):
        try:
            self._say(prompt, end='')
            return self._input().strip()
        except (EOFError, KeyboardInterrupt) as e:
            raise PromptCancelledError(f'prompt cancelled: {prompt}') from e

    def choose(self, prompt, options):
        self._say(prompt)
        for i, option in enumerate(options):
            self._say(f'  [{i}] {option}')

        while True:
            answer = self._read('Selection: ')
            if answer.isdigit() and int(answer) < len(options):
                return int(answer)
            self._say(f'Please enter a number between 0 and {len(options) - 1}')

    def string_required(self, prompt):
        while True:
            answer = self._read(f'{prompt}: ')
            if answer:
                return answer


class ScriptedPrompter(Prompter):
    """
    Answers prompts from pre-supplied values, in order.

    Running out of answers means the flow needed input nobody provided,
    which is treated as a cancelled prompt.
    """

    def __init__(self, choices=None, strings=None):
        self.choices = list(choices or [])
        self.strings = list(strings or [])
        self.asked = []

    def choose(self, prompt, options):
        self.asked.append(prompt)
        if not self.choices:
            raise PromptCancelledError(f'no answer supplied for: {prompt}')
        choice = self.choices.pop(0)
        if isinstance(choice, str):
            matches = [i for i, option in enumerate(options) if option.startswith(choice)]
            if not matches:
                raise PromptCancelledError(f'{choice!r} is not one of {options}')
            return matches[0]
        if not 0 <= choice < len(options):
            raise PromptCancelledError(f'choice {choice} out of range for: {prompt}')
        return choice

    def string_required(self, prompt):
        self.asked.append(prompt)
        if not self.strings:
            raise PromptCancelledError(f'no answer supplied for: {prompt}')
        return self.strings.pop(0)
