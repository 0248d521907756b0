"""Tests for token maps and substitution."""

from hmconfig.core.tokens import Installation, build_token_map, substitute, unresolved_tokens


class TestBuildTokenMap:
    """Tests for build_token_map."""

    def test_user_specific_entries(self) -> None:
        token_map = build_token_map("alice")

        assert token_map["USER"] == "alice"
        assert token_map["APPDATA"] == "C:\\Users\\alice\\AppData\\Roaming"
        assert token_map["USER_CFG"] == token_map["APPDATA"]
        assert token_map["SWTEMPPATH"] == "C:\\Users\\alice\\AppData\\Roaming\\OPEN MIND\\temp\\"

    def test_installation_entries(self) -> None:
        token_map = build_token_map("bob")

        assert token_map["VERSION"] == "33.0"
        assert token_map["MAJOR_VERSION"] == "33"
        assert token_map["HYPERMILL"] == "C:\\Program Files\\OPEN MIND\\hyperMILL\\33.0"
        assert token_map["TOOLDB"] == "C:\\Program Files\\OPEN MIND\\Tool Database\\33.0"
        assert token_map["GWS"] == "C:\\Users\\Public\\Documents\\OPEN MIND"
        assert token_map["PUBLICDOCUMENTS"] == "C:\\Users\\Public\\Documents"
        assert token_map["COMMON_APPDATA"] == "C:\\ProgramData"

    def test_same_shape_for_every_user(self) -> None:
        assert set(build_token_map("alice")) == set(build_token_map("bob"))

    def test_custom_installation(self) -> None:
        installation = Installation(version="34.1", users_root="D:\\Profiles")
        token_map = build_token_map("carol", installation)

        assert token_map["MAJOR_VERSION"] == "34"
        assert token_map["APPDATA"] == "D:\\Profiles\\carol\\AppData\\Roaming"
        assert token_map["HYPERMILL"].endswith("hyperMILL\\34.1")


class TestSubstitute:
    """Tests for substitute."""

    def test_replaces_all_occurrences(self) -> None:
        token_map = build_token_map("alice")
        result = substitute("[USER_CFG]\\USERS\\[USER]\\AutomationCenter\\[USER]", token_map)

        assert result == "C:\\Users\\alice\\AppData\\Roaming\\USERS\\alice\\AutomationCenter\\alice"

    def test_unknown_tokens_are_kept(self) -> None:
        token_map = build_token_map("alice")
        result = substitute("[NEW_TOKEN]\\[USER]", token_map)

        assert result == "[NEW_TOKEN]\\alice"

    def test_empty_and_none(self) -> None:
        assert substitute("", {"USER": "x"}) == ""
        assert substitute(None, {"USER": "x"}) is None

    def test_resubstitution_is_noop_when_resolved(self) -> None:
        token_map = build_token_map("alice")
        once = substitute("[HYPERMILL]\\[UNKNOWN]\\[VERSION]", token_map)

        assert unresolved_tokens(once, token_map) == []
        assert substitute(once, token_map) == once

    def test_unresolved_tokens_detected(self) -> None:
        token_map = {"A": "[B]", "B": "x"}
        assert unresolved_tokens("[A] and [B]", token_map) == ["A", "B"]
