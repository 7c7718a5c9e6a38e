from sla_app import app
from sla_app.app import DASHBOARD_PAGE, SETUP_PAGE, ordered_pages, register_page


def test_register_page_keeps_function(monkeypatch):
    monkeypatch.setattr(app, "PAGES", {})

    @register_page("Reports")
    def reports():
        return "rendered"

    assert app.PAGES == {"Reports": reports}
    assert reports() == "rendered"


def test_dashboard_then_setup_then_alphabetical():
    pages, index = ordered_pages(["Zeta", SETUP_PAGE, "Alpha", DASHBOARD_PAGE], has_source=True)
    assert pages == [DASHBOARD_PAGE, SETUP_PAGE, "Alpha", "Zeta"]
    assert index == 0


def test_setup_preselected_until_source_connected():
    pages, index = ordered_pages([DASHBOARD_PAGE, SETUP_PAGE], has_source=False)
    assert pages[index] == SETUP_PAGE


def test_no_setup_page_defaults_to_first():
    assert ordered_pages(["Beta", "Alpha"], has_source=False) == (["Alpha", "Beta"], 0)
