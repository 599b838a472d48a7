"""
Tests for spoken announcements.
"""

from ultrabunt.core.config.loader import TtsSettings
from ultrabunt.ui.cli.speech import Announcer


class TestAnnouncer:
    def test_disabled_is_silent(self, make_runner):
        runner = make_runner(available={"spd-say"})
        assert not Announcer(TtsSettings(), runner).speak("hello")
        assert runner.calls == []

    def test_spd_say_command(self, make_runner):
        runner = make_runner(available={"spd-say"})
        announcer = Announcer(TtsSettings(enabled=True, voice="male1", rate=5), runner)
        assert announcer.speak("Installing htop", priority="important")
        cmd = runner.calls[-1]
        assert cmd[0] == "spd-say"
        assert cmd[cmd.index("--voice-type") + 1] == "male1"
        assert cmd[cmd.index("--rate") + 1] == "5"
        assert cmd[cmd.index("--priority") + 1] == "important"
        assert cmd[-1] == "Installing htop"

    def test_espeak_fallback(self, make_runner):
        runner = make_runner(available={"espeak"})
        cmd = Announcer(TtsSettings(enabled=True), runner).command("hi")
        assert cmd[0] == "espeak"
        assert cmd[-1] == "hi"

    def test_no_engine(self, make_runner):
        runner = make_runner()
        announcer = Announcer(TtsSettings(enabled=True), runner)
        assert not announcer.speak("hi")
        assert not announcer.speak("again")
        assert runner.calls == []

    def test_strips_styling(self, make_runner):
        import click

        runner = make_runner(available={"spd-say"})
        Announcer(TtsSettings(enabled=True), runner).speak(click.style(" Done ", fg="green"))
        assert runner.calls[-1][-1] == "Done"

    def test_announce_prints(self, make_runner, capsys):
        Announcer(TtsSettings(), make_runner()).announce("Welcome")
        assert "Welcome" in capsys.readouterr().out
