"""Session wiring: polling, push intake, commands, config, and status strings."""
import asyncio
import pytest
from httpx import ASGITransport
from api.app import app
from client.config import AppConfig, AutoBuyStatus, ClientSettings
from client.multiplayer import MultiplayerClient, MultiplayerError
from conftest import FakeEngine, make_state
from runtime.session import ClientSession


def make_session(engine: FakeEngine, **kwargs) -> ClientSession:
    return ClientSession(engine, ClientSettings(engine_ws_url=None), **kwargs)


@pytest.mark.asyncio
async def test_poll_applies_snapshot_and_redraws_both_surfaces(engine):
    session = make_session(engine)
    assert await session.poll_snapshot()
    assert session.reconciler.current is engine.state
    assert session.main_view.redraws == 1
    assert session.widget.redraws == 1
    assert session.widget.last_frame.header == "P:1 E:1"


@pytest.mark.asyncio
async def test_poll_failure_becomes_status_text(engine):
    session = make_session(engine)
    engine.fail = True
    assert await session.poll_snapshot() is False
    assert session.reconciler.current is None
    assert session.events.status("engine").startswith("Failed to get game state")


@pytest.mark.asyncio
async def test_slow_poll_overtaken_by_push_is_dropped(engine):
    session = make_session(engine)
    engine.gate = asyncio.Event()
    slow = asyncio.create_task(session.poll_snapshot())
    await asyncio.sleep(0)

    pushed = make_state(coins=99)
    session.push.publish(pushed)
    engine.gate.set()

    assert await slow is False
    assert session.reconciler.current is pushed


@pytest.mark.asyncio
async def test_purchase_is_fire_and_forget(engine):
    session = make_session(engine)
    await session.poll_snapshot()
    assert await session.purchase_upgrade("attack", "small")
    assert ("purchase_upgrade", "attack", "small") in engine.calls
    assert session.reconciler.current.coins == 0
    assert session.reconciler.current.upgrades.small_attack == 0


@pytest.mark.asyncio
async def test_purchase_failure_and_bad_track(engine):
    session = make_session(engine)
    with pytest.raises(ValueError):
        await session.purchase_upgrade("defense", "small")
    engine.fail = True
    assert await session.purchase_upgrade("base_hp") is False
    assert session.events.status("engine").startswith("Failed to purchase upgrade")


@pytest.mark.asyncio
async def test_auto_buy_status_line(engine):
    session = make_session(engine)
    assert await session.refresh_auto_buy() == "Inactive"
    engine.auto_buy = AutoBuyStatus(enabled=True, upgrade_type="hp", unit_type="large", remaining_time=65.4)
    assert await session.refresh_auto_buy() == "Active: 1m 5s remaining"
    assert session.events.status("auto_buy") == "Active: 1m 5s remaining"


@pytest.mark.asyncio
async def test_auto_buy_commands(engine):
    session = make_session(engine)
    assert await session.start_auto_buy("speed", "medium", 120)
    assert ("start_auto_buy", "speed", "medium", 120) in engine.calls
    assert await session.stop_auto_buy()
    engine.fail = True
    assert await session.stop_auto_buy() is False
    assert session.events.status("auto_buy").startswith("Failed to stop auto-buy")


@pytest.mark.asyncio
async def test_load_config_points_multiplayer_and_widget(engine):
    engine.config = AppConfig(widget_unit_size=10, multiplayer_server_url="http://mp.example/")
    session = make_session(engine)
    config = await session.load_config()
    assert config.widget_unit_size == 10
    assert session.widget.unit_size == 10
    assert session.multiplayer.server_url == "http://mp.example"


@pytest.mark.asyncio
async def test_load_config_failure_keeps_defaults(engine):
    engine.fail = True
    session = make_session(engine)
    config = await session.load_config()
    assert config == AppConfig()
    assert not session.multiplayer.is_connected()


@pytest.mark.asyncio
async def test_apply_config_saves_then_applies(engine):
    session = make_session(engine)
    config = AppConfig(widget_unit_size=12, multiplayer_server_url="http://mp")
    assert await session.apply_config(config)
    assert [c[0] for c in engine.calls] == ["save_config", "apply_config"]
    assert engine.config == config
    assert session.widget.unit_size == 12
    assert session.multiplayer.server_url == "http://mp"


@pytest.mark.asyncio
async def test_apply_config_failures(engine):
    session = make_session(engine)
    engine.fail_on = {"apply_config"}
    assert await session.apply_config(AppConfig(widget_unit_size=8)) is False
    assert engine.config.widget_unit_size == 8
    assert session.events.status("engine").startswith("Failed to apply settings")

    engine.fail_on = {"save_config"}
    engine.calls.clear()
    assert await session.apply_config(AppConfig(widget_unit_size=4)) is False
    assert [c[0] for c in engine.calls] == ["save_config"]
    assert session.events.status("engine").startswith("Failed to save settings")


@pytest.mark.asyncio
async def test_exit_stops_session_even_when_engine_fails(engine):
    session = make_session(engine)
    await session.start()
    engine.fail = True
    await session.exit()
    assert ("exit",) in engine.calls
    assert not any(task.running for task in session.tasks)


@pytest.mark.asyncio
async def test_register_player_saves_identity(engine, fresh_store):
    engine.config = AppConfig(multiplayer_server_url="http://test")
    mp = MultiplayerClient(transport=ASGITransport(app=app))
    session = make_session(engine, multiplayer=mp)
    await session.load_config()
    await session.poll_snapshot()

    result = await session.register_player("Frank")

    assert session.multiplayer.is_connected()
    assert engine.config.multiplayer_player_name == "Frank"
    assert engine.config.multiplayer_player_id == result.player_id
    assert (await session.health_check()).player_count == 1
    assert session.events.status("multiplayer") == "Server reachable ✔"


@pytest.mark.asyncio
async def test_register_player_without_server(engine):
    session = make_session(engine)
    with pytest.raises(MultiplayerError):
        await session.register_player("Gina")
    assert session.events.status("multiplayer").startswith("Failed to connect")


@pytest.mark.asyncio
async def test_start_and_stop_run_all_tasks(engine):
    settings = ClientSettings(engine_ws_url=None, render_interval_s=0.01, widget_interval_s=0.01,
                              sync_interval_s=0.01, auto_buy_interval_s=0.01)
    session = ClientSession(engine, settings)
    await session.start()
    await asyncio.sleep(0.05)
    await session.stop()

    assert all(task.ticks >= 1 for task in session.tasks)
    assert not any(task.running for task in session.tasks)
    assert session.reconciler.applied >= 2


@pytest.mark.asyncio
async def test_list_players(engine, fresh_store):
    engine.config = AppConfig(multiplayer_server_url="http://test")
    mp = MultiplayerClient(transport=ASGITransport(app=app))
    session = make_session(engine, multiplayer=mp)
    await session.load_config()
    await session.poll_snapshot()
    await session.register_player("Hana")

    players = await session.list_players()
    assert [p.player_name for p in players] == ["Hana"]

    offline = make_session(FakeEngine())
    assert await offline.list_players() == []
    assert offline.events.status("multiplayer").startswith("Failed to get players")
