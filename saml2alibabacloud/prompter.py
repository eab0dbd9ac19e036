"""Terminal prompts.

Provider flows, ``configure`` and role selection all ask the user through a
prompter object so that tests can swap in a scripted one.
"""

import getpass

from saml2alibabacloud.errors import PromptCancelled


class ConsolePrompter:
    """Prompt on stdin/stdout."""

    def __init__(self, input_func=input, getpass_func=getpass.getpass):
        self._input = input_func
        self._getpass = getpass_func

    def _read(self, func, text):
        try:
            return func(text)
        except EOFError as exc:
            raise PromptCancelled("prompt cancelled") from exc

    def choose_with_default(self, prompt, default, options):
        """Return one of *options*, *default* when the user just hits enter."""
        if not options:
            raise PromptCancelled(f"no options to choose from for {prompt!r}")

        print(f"\n{prompt}")
        for i, option in enumerate(options):
            marker = "*" if option == default else " "
            print(f" {marker}[{i + 1}] {option}")

        while True:
            answer = self._read(self._input, "\nSelection: ").strip()
            if not answer and default in options:
                return default
            if answer in options:
                return answer
            try:
                choice = int(answer) - 1
                if 0 <= choice < len(options):
                    return options[choice]
            except ValueError:
                pass
            print("Invalid selection, please try again.")

    def string(self, prompt, default=""):
        suffix = f" [{default}]" if default else ""
        answer = self._read(self._input, f"{prompt}{suffix}: ").strip()
        return answer or default

    def password(self, prompt):
        return self._read(self._getpass, f"{prompt}: ")
