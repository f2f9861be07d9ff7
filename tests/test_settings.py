from pathlib import Path
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from mutebot.config.settings import SettingsError, load_settings, settings_summary


class SettingsLoaderTests(unittest.TestCase):
    def _minimal_env(self):
        return {
            "BOT_TOKEN": "token-abcdef",
            "APPLICATION_ID": "1100000000000000001",
            "TARGET_USER_ID": "1200000000000000002",
            "MUTE_ROLE": "1300000000000000003",
        }

    def test_loads_required_settings_from_environment(self):
        settings = load_settings(environ=self._minimal_env())

        self.assertEqual(settings.bot.bot_token, "token-abcdef")
        self.assertEqual(settings.bot.application_id, 1100000000000000001)
        self.assertEqual(settings.bot.target_user_id, 1200000000000000002)
        self.assertEqual(settings.bot.mute_role_id, 1300000000000000003)
        self.assertIsNone(settings.bot.guild_id)
        self.assertFalse(settings.bot.is_guild_scoped)
        self.assertEqual(settings.runtime.log_level, "INFO")
        self.assertEqual(settings.runtime.mute_duration_seconds, 15.0)

    def test_guild_id_scopes_commands(self):
        env = self._minimal_env()
        env["GUILD_ID"] = "1400000000000000004"

        settings = load_settings(environ=env)

        self.assertEqual(settings.bot.guild_id, 1400000000000000004)
        self.assertTrue(settings.bot.is_guild_scoped)

    def test_empty_guild_id_means_global(self):
        env = self._minimal_env()
        env["GUILD_ID"] = ""

        settings = load_settings(environ=env)

        self.assertIsNone(settings.bot.guild_id)

    def test_missing_required_setting_names_the_key(self):
        for key in ("BOT_TOKEN", "APPLICATION_ID", "TARGET_USER_ID", "MUTE_ROLE"):
            env = self._minimal_env()
            del env[key]

            with self.subTest(key=key):
                with self.assertRaises(SettingsError) as ctx:
                    load_settings(environ=env)
                self.assertIn(key, str(ctx.exception))

    def test_non_numeric_id_raises_settings_error(self):
        env = self._minimal_env()
        env["MUTE_ROLE"] = "muted"

        with self.assertRaises(SettingsError) as ctx:
            load_settings(environ=env)

        self.assertIn("MUTE_ROLE", str(ctx.exception))

    def test_runtime_overrides(self):
        env = self._minimal_env()
        env["MUTEBOT_LOG_LEVEL"] = "debug"
        env["MUTEBOT_MUTE_DURATION_SECONDS"] = "30"

        settings = load_settings(environ=env)

        self.assertEqual(settings.runtime.log_level, "DEBUG")
        self.assertEqual(settings.runtime.mute_duration_seconds, 30.0)

    def test_invalid_log_level_raises_settings_error(self):
        env = self._minimal_env()
        env["MUTEBOT_LOG_LEVEL"] = "LOUD"

        with self.assertRaises(SettingsError):
            load_settings(environ=env)

    def test_non_positive_duration_raises_settings_error(self):
        env = self._minimal_env()
        env["MUTEBOT_MUTE_DURATION_SECONDS"] = "0"

        with self.assertRaises(SettingsError):
            load_settings(environ=env)

    def test_non_finite_duration_raises_settings_error(self):
        for raw in ("nan", "inf", "-inf"):
            with self.subTest(raw=raw):
                env = self._minimal_env()
                env["MUTEBOT_MUTE_DURATION_SECONDS"] = raw

                with self.assertRaisesRegex(SettingsError, "finite"):
                    load_settings(environ=env)

    def test_summary_redacts_token(self):
        summary = settings_summary(load_settings(environ=self._minimal_env()))

        self.assertEqual(summary["bot"]["bot_token"], "***cdef")
        self.assertEqual(summary["bot"]["target_user_id"], 1200000000000000002)
        self.assertNotIn("token-abcdef", str(summary))


if __name__ == "__main__":
    unittest.main()
