import pytest

from errors import PromptCancelledError
from prompter import ConsolePrompter, ScriptedPrompter


def scripted_input(answers):
    answers = list(answers)

    def _input(prompt=None):
        if not answers:
            raise EOFError
        return answers.pop(0)
    return _input


def test_console_choose_retries_until_valid():
    prompter = ConsolePrompter(scripted_input(['x', '7', '1']))
    assert prompter.choose('Pick one', ['a', 'b']) == 1


def test_console_string_required_skips_blank():
    prompter = ConsolePrompter(scripted_input(['', '  ', '123456']))
    assert prompter.string_required('Enter passcode') == '123456'


def test_console_prompts_stay_off_stdout(capsys):
    prompter = ConsolePrompter(scripted_input(['1']))
    assert prompter.choose('Pick one', ['a', 'b']) == 1

    captured = capsys.readouterr()
    assert captured.out == ''
    assert '[1] b' in captured.err
    assert 'Selection: ' in captured.err


def test_console_eof_cancels():
    with pytest.raises(PromptCancelledError):
        ConsolePrompter(scripted_input([])).string_required('Enter passcode')


def test_scripted_choice_by_prefix():
    prompter = ScriptedPrompter(choices=['SMS'])
    assert prompter.choose('Select', ['DUO MFA authentication', 'SMS MFA authentication']) == 1


def test_scripted_runs_out():
    prompter = ScriptedPrompter()
    with pytest.raises(PromptCancelledError):
        prompter.choose('Select', ['a', 'b'])
    assert prompter.asked == ['Select']
