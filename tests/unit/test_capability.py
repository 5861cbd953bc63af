"""
Unit tests for the automation contract and the portal backend's
configuration. Browser calls are replaced by mocks.
"""

from unittest.mock import AsyncMock, MagicMock, call

import pytest

from portal_agent.automation import (
    ActionType,
    BrowserConfig,
    PortalAutomation,
    PortalConfig,
    SIDE_EFFECTING_ACTIONS,
    SubmitType,
)
from portal_agent.automation.portal import (
    DROPDOWN_ITEMS,
    FIELD_CONTAINERS,
    SECTION_TABS,
)


class TestActionType:
    @pytest.mark.parametrize("name,expected", [
        ("LOGIN", ActionType.LOGIN),
        ("login", ActionType.LOGIN),
        (" get-state ", ActionType.GET_STATE),
        ("GET_CARERS", ActionType.LIST_ENTITIES),
        ("SELECT_CARER", ActionType.SELECT_ENTITY),
        ("NAVIGATE_TO_FORM", ActionType.NAVIGATE_TO_TARGET),
        ("FILL_FORM", ActionType.FILL_TARGET),
        ("SUBMIT_FORM", ActionType.SUBMIT_TARGET),
    ])
    def test_parse(self, name, expected):
        assert ActionType.parse(name) is expected

    @pytest.mark.parametrize("name", ["DANCE", "", None, 3])
    def test_parse_unknown(self, name):
        assert ActionType.parse(name) is None

    def test_side_effecting_actions(self):
        assert SIDE_EFFECTING_ACTIONS == {ActionType.FILL_TARGET, ActionType.SUBMIT_TARGET}


class TestSubmitType:
    @pytest.mark.parametrize("value,expected", [
        ("draft", SubmitType.DRAFT),
        ("SUBMIT", SubmitType.SUBMIT),
        ("submitAndLock", SubmitType.SUBMIT_AND_LOCK),
        ("submit_and_lock", SubmitType.SUBMIT_AND_LOCK),
        ("publish", SubmitType.DRAFT),
        (None, SubmitType.DRAFT),
        (SubmitType.SUBMIT, SubmitType.SUBMIT),
    ])
    def test_parse(self, value, expected):
        assert SubmitType.parse(value) is expected

    def test_button_labels(self):
        assert SubmitType.DRAFT.button_label == "Save as Draft"
        assert SubmitType.SUBMIT.button_label == "Submit"
        assert SubmitType.SUBMIT_AND_LOCK.button_label == "Submit & Lock"


class TestPortalConfig:
    def test_security_answer_by_keyword(self):
        config = PortalConfig(
            security_answers={"sport": "Cricket", "city": "Leeds"},
            default_security_answer="fallback",
        )

        assert config.security_answer_for("What is your favourite SPORT?") == "Cricket"
        assert config.security_answer_for("In what city were you born?") == "Leeds"
        assert config.security_answer_for("What was your first car?") == "fallback"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PORTAL_URL", "https://portal.test/#/login")
        monkeypatch.setenv("PORTAL_USERNAME", "worker")
        monkeypatch.setenv("PORTAL_PASSWORD", "secret")
        monkeypatch.setenv("PORTAL_ANSWER_FOOD", "Pizza")
        monkeypatch.setenv("PORTAL_SETTLE_MS", "10")
        monkeypatch.setenv("PORTAL_TARGET_NAME", "Annual Review")

        config = PortalConfig.from_env()

        assert config.url == "https://portal.test/#/login"
        assert config.username == "worker"
        assert config.password == "secret"
        assert config.security_answers["food"] == "Pizza"
        assert config.settle_ms == 10
        assert config.target_name == "Annual Review"
        assert config.entity_menu == "Foster Carer"


@pytest.fixture
def page():
    page = MagicMock()
    page.url = "https://portal.test/#/dashboard"
    page.title = AsyncMock(return_value="Dashboard")
    page.wait_for_timeout = AsyncMock()
    return page


@pytest.fixture
def portal(page):
    browser = MagicMock()
    browser.get_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()
    return PortalAutomation(config=PortalConfig(settle_ms=0), browser=browser)


class TestPortalAutomation:
    @pytest.mark.asyncio
    async def test_get_state(self, portal):
        outcome = await portal.get_state()

        assert outcome.success is True
        assert outcome.data == {"url": "https://portal.test/#/dashboard", "title": "Dashboard"}

    @pytest.mark.asyncio
    async def test_select_missing_row(self, portal, page):
        row = page.locator.return_value.filter.return_value
        row.locator.return_value.first.is_visible = AsyncMock(return_value=False)

        outcome = await portal.select_entity('FCC-"99"')

        assert outcome.success is False
        assert outcome.error == 'No row for FCC-"99"'
        page.locator.assert_called_with("tr")
        page.locator.return_value.filter.assert_called_with(has_text='FCC-"99"')

    @pytest.mark.asyncio
    async def test_entity_menu_matched_literally(self, page):
        browser = MagicMock()
        browser.get_page = AsyncMock(return_value=page)
        portal = PortalAutomation(config=PortalConfig(entity_menu="Carers (All)", settle_ms=0), browser=browser)
        page.get_by_role.return_value.click = AsyncMock()
        page.wait_for_selector = AsyncMock()
        page.evaluate = AsyncMock(return_value=[{"code": "FCC-18", "name": "Smith"}, {"code": "", "name": "Blank"}])

        outcome = await portal.list_entities()

        assert outcome.success is True
        assert [e["code"] for e in outcome.data] == ["FCC-18"]
        menu = page.get_by_role.call_args_list[0].kwargs["name"]
        assert menu.search("carers (all)")
        assert not menu.search("Carers All")

    @pytest.mark.asyncio
    async def test_submit_clicks_button_for_type(self, portal, page):
        button = page.get_by_role.return_value
        button.click = AsyncMock()
        page.get_by_text.return_value.first.is_visible = AsyncMock(return_value=True)

        outcome = await portal.submit_target(SubmitType.SUBMIT_AND_LOCK)

        assert outcome.success is True
        assert outcome.data == "Form submitted successfully"
        page.get_by_role.assert_called_with("button", name="Submit & Lock", exact=True)

    @pytest.mark.asyncio
    async def test_close_releases_browser(self, portal):
        await portal.close()

        portal._browser.close.assert_awaited_once()


def test_browser_config_from_env(monkeypatch):
    monkeypatch.setenv("BROWSER_TYPE", "safari")
    monkeypatch.setenv("BROWSER_HEADLESS", "yes")
    monkeypatch.setenv("BROWSER_SLOW_MO", "0")

    config = BrowserConfig.from_env()

    assert config.browser_type == "webkit"
    assert config.headless is True
    assert config.slow_mo == 0


def element(visible=True, tag="input", checked=False, options=()):
    """Locator stand-in; chained filters and sub-locators resolve to itself."""
    locator = MagicMock()
    locator.first = locator
    locator.filter.return_value = locator
    locator.locator.return_value = locator
    locator.is_visible = AsyncMock(return_value=visible)
    locator.evaluate = AsyncMock(return_value=tag)
    locator.is_checked = AsyncMock(return_value=checked)
    locator.get_attribute = AsyncMock(return_value=None)
    locator.all_inner_texts = AsyncMock(return_value=list(options))
    for name in ("click", "fill", "set_checked", "select_option"):
        setattr(locator, name, AsyncMock())
    return locator


@pytest.fixture
def form_page(page):
    """Page whose CSS locators are looked up by selector; anything else is hidden."""
    hidden = element(visible=False)
    page.elements = {}
    page.locator.side_effect = lambda selector: page.elements.get(selector, hidden)
    page.get_by_label.return_value = hidden
    page.get_by_role.return_value = hidden
    page.get_by_placeholder.return_value = hidden
    page.keyboard.press = AsyncMock()
    return page


class TestFormFilling:
    @pytest.mark.asyncio
    async def test_primeng_dropdown_opened_and_option_clicked(self, portal, form_page):
        dropdown, option = element(), element()
        form_page.elements = {FIELD_CONTAINERS: dropdown, DROPDOWN_ITEMS: option}

        outcome = await portal.fill_target({"homeVisitType": "Announced"})

        assert outcome.success is True
        assert outcome.data == {"filled": ["homeVisitType"], "missing": []}
        dropdown.click.assert_awaited_once()
        option.click.assert_awaited_once()
        assert dropdown.filter.call_args.kwargs["has_text"].search("Home Visit Type")
        assert option.filter.call_args.kwargs["has_text"].pattern == r"^\s*Announced\s*$"

    @pytest.mark.asyncio
    async def test_unknown_dropdown_option_closes_panel(self, portal, form_page):
        form_page.elements = {FIELD_CONTAINERS: element(), DROPDOWN_ITEMS: element(visible=False)}

        outcome = await portal.fill_target({"category": "Long Term"})

        assert outcome.success is False
        assert outcome.data["missing"] == ["category"]
        form_page.keyboard.press.assert_awaited_once_with("Escape")

    @pytest.mark.asyncio
    async def test_native_select_preferred(self, portal, form_page):
        select = element(tag="select")
        form_page.get_by_label.return_value = select

        outcome = await portal.fill_target({"Category": "Respite"})

        assert outcome.success is True
        select.select_option.assert_awaited_once_with(label="Respite")

    @pytest.mark.asyncio
    async def test_date_filled_by_placeholder(self, portal, form_page):
        date_input = element()
        form_page.get_by_placeholder.return_value = date_input

        outcome = await portal.fill_target({"dateOfVisit": "01/10/2026 10:00"})

        assert outcome.success is True
        form_page.get_by_placeholder.assert_called_with("dd/mm/yyyy hh:mm")
        date_input.fill.assert_awaited_once_with("01/10/2026 10:00")
        form_page.keyboard.press.assert_awaited_once_with("Escape")

    @pytest.mark.asyncio
    async def test_checkbox_by_role_accepts_string_values(self, portal, form_page):
        box = element()
        form_page.get_by_role.return_value = box

        outcome = await portal.fill_target({"homeFileSeen": "yes"})

        assert outcome.success is True
        box.set_checked.assert_awaited_once_with(True)
        role, = form_page.get_by_role.call_args.args
        assert role == "checkbox"
        assert form_page.get_by_role.call_args.kwargs["name"].search("Home File Seen")

    @pytest.mark.asyncio
    async def test_primeng_checkbox_clicked_only_to_change_state(self, portal, form_page):
        prime = element(checked=True)
        form_page.elements = {"p-checkbox, .p-checkbox": prime}

        outcome = await portal.fill_target({
            "medicationSheetChecked": True,
            "localAuthorityFeedbackRequested": False,
        })

        assert outcome.success is True
        prime.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_section_b_textarea_after_switching_tab(self, portal, form_page):
        area, tab = element(), element()
        form_page.elements = {FIELD_CONTAINERS: area, SECTION_TABS: tab}

        outcome = await portal.fill_target({"lineManagerComments": "Reviewed", "natureOfVisit": "Routine"})

        assert outcome.data["filled"] == ["natureOfVisit", "lineManagerComments"]
        assert area.fill.await_args_list == [call("Routine"), call("Reviewed")]
        tab.click.assert_awaited_once()
        assert tab.filter.call_args.kwargs["has_text"].search("Carer Section B")

    @pytest.mark.asyncio
    async def test_unmapped_key_filled_by_label(self, portal, form_page):
        field_input = element()
        form_page.get_by_label.return_value = field_input

        outcome = await portal.fill_target({"Visit Notes": "Children settled"})

        assert outcome.success is True
        form_page.get_by_label.assert_called_with("Visit Notes", exact=False)
        field_input.fill.assert_awaited_once_with("Children settled")

    @pytest.mark.asyncio
    async def test_field_not_on_page_is_missing(self, portal, form_page):
        outcome = await portal.fill_target({"Nope": "x"})

        assert outcome.success is False
        assert outcome.data == {"filled": [], "missing": ["Nope"]}


class TestFormStructure:
    @pytest.mark.asyncio
    async def test_known_options_when_page_has_no_select(self, portal, form_page):
        outcome = await portal.extract_form_structure()

        assert outcome.success is True
        structure = outcome.data
        assert structure["form_name"] == "Supervisory Home Visit"
        assert structure["url"] == "https://portal.test/#/dashboard"
        assert [s["name"] for s in structure["sections"]] == ["Carer Section A", "Carer Section B"]
        assert structure["buttons"] == ["Save as Draft", "Submit", "Submit & Lock", "Back"]
        fields = {f["name"]: f for s in structure["sections"] for f in s["fields"]}
        assert fields["homeVisitType"]["options"] == ["Announced", "Cancelled", "Rescheduled"]
        assert fields["dateOfVisit"]["placeholder"] == "dd/mm/yyyy hh:mm"
        assert fields["supervisionSentToCarer"]["type"] == "checkbox"

    @pytest.mark.asyncio
    async def test_options_read_from_native_select(self, portal, form_page):
        form_page.get_by_label.return_value = element(tag="select", options=["Select Category", " Respite ", "Staying Put"])

        outcome = await portal.extract_form_structure()

        category = outcome.data["sections"][0]["fields"][0]
        assert category["name"] == "category"
        assert category["required"] is True
        assert category["options"] == ["Respite", "Staying Put"]
