from hawkeye import version


def test_user_agent_default_version():
    assert version.user_agent() == "Hawkeye/dev"


def test_user_agent_tracks_version(monkeypatch):
    monkeypatch.setattr(version, "VERSION", "1.2.3")
    assert version.user_agent() == "Hawkeye/1.2.3"


def test_user_agent_prefix_and_suffix():
    agent = version.user_agent()
    assert agent.startswith("Hawkeye/")
    assert agent.endswith(version.VERSION)


def test_user_agent_ignores_build_metadata(monkeypatch):
    monkeypatch.setattr(version, "BUILD_DATE", "2024-01-01T00:00:00Z")
    monkeypatch.setattr(version, "GIT_COMMIT", "abc1234")
    assert version.user_agent() == "Hawkeye/dev"