"""Tests for view projections and the console renderer."""

from __future__ import annotations

import io

from qoh_wallet.store import seed_demo_data
from qoh_wallet.views import (
    AdminRosters,
    ConsoleView,
    PlayerPanel,
    build_admin_rosters,
    build_login_options,
    build_player_panel,
)


class TestProjections:
    def test_guest_panel(self):
        panel = build_player_panel(seed_demo_data(), None)
        assert panel.is_guest
        assert panel.wallet == 0

    def test_player_panel(self):
        ledger = seed_demo_data()
        panel = build_player_panel(ledger, ledger.find_player(1), "avajuwa")
        assert panel.name == "Ava Hearts"
        assert [c.username for c in panel.game_accounts] == ["avaQueen", "avaFlame"]
        assert [t.id for t in panel.transfers] == [1]
        assert panel.transfers[0].game == "Ultra Panda"
        assert len(panel.activity) == 3
        assert panel.suggested_username == "avajuwa"

    def test_player_panel_only_own_transfers(self):
        ledger = seed_demo_data()
        assert build_player_panel(ledger, ledger.find_player(2)).transfers == ()

    def test_login_options(self):
        options = build_login_options(seed_demo_data(), 2)
        assert [o.selected for o in options] == [False, True]

    def test_admin_rosters(self):
        rosters = build_admin_rosters(seed_demo_data())
        assert rosters.player_count == 2
        assert rosters.pending_count == 0
        assert len(rosters.transfers) == 1


class TestConsoleView:
    def _view(self) -> tuple[ConsoleView, io.StringIO, io.StringIO]:
        out, err = io.StringIO(), io.StringIO()
        return ConsoleView(out=out, err=err), out, err

    def test_player_output(self):
        ledger = seed_demo_data()
        view, out, _ = self._view()
        view.render_player(build_player_panel(ledger, ledger.find_player(1), "avajuwa"))
        text = out.getvalue()
        assert "Ava Hearts's wallet: $250" in text
        assert "Ultra Panda • avaQueen" in text
        assert "$100 added via tierlock" in text
        assert "Suggested username: avajuwa" in text

    def test_guest_output(self):
        view, out, _ = self._view()
        view.render_player(PlayerPanel())
        assert "No player selected." in out.getvalue()

    def test_empty_player_sections(self):
        ledger = seed_demo_data()
        leo = ledger.find_player(2)
        leo.activity = []
        view, out, _ = self._view()
        view.render_player(build_player_panel(ledger, leo))
        text = out.getvalue()
        assert "No transfers yet." in text
        assert "No activity yet." in text

    def test_admin_output(self):
        view, out, _ = self._view()
        view.render_admin(build_admin_rosters(seed_demo_data()))
        text = out.getvalue()
        assert "Players (2 players)" in text
        assert "Transfers (0 pending)" in text
        assert "[approve]" not in text

    def test_empty_admin_output(self):
        view, out, _ = self._view()
        view.render_admin(AdminRosters())
        assert "No players yet." in out.getvalue()
        assert "No transfer requests yet." in out.getvalue()

    def test_login_options_output(self):
        view, out, _ = self._view()
        view.render_login_options(build_login_options(seed_demo_data(), 1))
        assert "* 1: Ava Hearts (ava@example.com)" in out.getvalue()

    def test_alert_goes_to_err(self):
        view, out, err = self._view()
        view.alert("Not enough wallet credits.")
        assert out.getvalue() == ""
        assert "Not enough wallet credits." in err.getvalue()
