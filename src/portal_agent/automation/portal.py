"""
Portal Automation Backend

Playwright implementation of the AutomationCapability for a legacy web
portal that has no API: log in (with an optional security question), list
entities from a data table, open one, navigate to its target form, fill
the form and submit it.

Selectors follow the accessible names the portal exposes. Menu labels and
the target form name are configurable so the same routines drive other
portals with the same shape. Form fields are filled by widget kind
(PrimeNG dropdowns, date pickers, checkboxes, textareas) as described by
the configured FormDefinition.
"""

import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError, Page

from ..config import get_logger
from .capability import ActionOutcome, AutomationCapability, Entity, SubmitType
from .controller import BrowserConfig, BrowserController
from .forms import HOME_VISIT_FORM, FieldKind, FormDefinition, FormField

load_dotenv()

logger = get_logger(__name__)

# Question keyword -> env var holding the answer
SECURITY_QUESTION_KEYS = {
    "sport": "PORTAL_ANSWER_SPORT",
    "food": "PORTAL_ANSWER_FOOD",
    "job": "PORTAL_ANSWER_CITY",
    "city": "PORTAL_ANSWER_CITY",
    "nickname": "PORTAL_ANSWER_NICKNAME",
}

# Table rows -> entity fields, run in the page
EXTRACT_ROWS_SCRIPT = """
() => {
  const rows = document.querySelectorAll(
    'table tbody tr, [role="row"], .p-datatable-tbody tr'
  );
  const results = [];
  const seen = new Set();
  for (const row of rows) {
    const cells = row.querySelectorAll('td, [role="cell"], [role="gridcell"]');
    if (cells.length < 6) continue;
    const button = cells[0].querySelector('button');
    if (!button || button.textContent.trim() !== 'Select') continue;
    const text = (i) => (cells[i] ? cells[i].textContent.trim() : '');
    const code = text(1);
    if (!code || seen.has(code)) continue;
    seen.add(code);
    results.push({
      code: code,
      name: text(2),
      area: text(3),
      status: text(4),
      approval_date: text(5),
      user_name: text(6),
    });
  }
  return results;
}
"""

TAG_NAME_SCRIPT = "el => el.tagName.toLowerCase()"

FIELD_CONTAINERS = ".p-field, .form-group, .field"
DROPDOWN_ITEMS = '.p-dropdown-panel li, .p-dropdown-items li, [role="option"]'
DATE_INPUTS = '.p-calendar input, p-calendar input, input[type="datetime-local"], input[type="date"]'
SECTION_TABS = '[role="tab"], .p-tabview-nav li, .nav-link'


def _is_checked(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "on", "checked")
    return bool(value)


@dataclass
class PortalConfig:
    """
    Portal location, credentials and navigation labels.
    """

    url: str = "https://fostering.starlight.inc/starlightdemo/#/login/1"
    username: str = ""
    password: str = ""
    security_answers: dict[str, str] = field(default_factory=dict)
    default_security_answer: str = ""

    entity_menu: str = "Foster Carer"
    entity_list: str = "Carer List"
    target_name: str = "Supervisory Home Visit"
    target_parent_menus: tuple[str, ...] = ("Home Visit", "Supervision", "Forms", "Records")
    form: FormDefinition = HOME_VISIT_FORM

    # Settle time after clicks, in ms
    settle_ms: int = 2000

    @classmethod
    def from_env(cls) -> "PortalConfig":
        """
        Create PortalConfig from environment variables.

        Environment variables:
            PORTAL_URL, PORTAL_USERNAME, PORTAL_PASSWORD
            PORTAL_SECURITY_ANSWER: fallback answer for unknown questions
            PORTAL_ANSWER_SPORT / _FOOD / _CITY / _NICKNAME
            PORTAL_ENTITY_MENU, PORTAL_ENTITY_LIST, PORTAL_TARGET_NAME
            PORTAL_SETTLE_MS: int in ms (default: 2000)
        """
        answers = {}
        for keyword, env_name in SECURITY_QUESTION_KEYS.items():
            value = os.getenv(env_name)
            if value:
                answers[keyword] = value

        defaults = cls()
        return cls(
            url=os.getenv("PORTAL_URL", defaults.url),
            username=os.getenv("PORTAL_USERNAME", ""),
            password=os.getenv("PORTAL_PASSWORD", ""),
            security_answers=answers,
            default_security_answer=os.getenv("PORTAL_SECURITY_ANSWER", ""),
            entity_menu=os.getenv("PORTAL_ENTITY_MENU", defaults.entity_menu),
            entity_list=os.getenv("PORTAL_ENTITY_LIST", defaults.entity_list),
            target_name=os.getenv("PORTAL_TARGET_NAME", defaults.target_name),
            settle_ms=int(os.getenv("PORTAL_SETTLE_MS", "2000")),
        )

    def security_answer_for(self, question: str) -> str:
        """Pick the configured answer whose keyword appears in the question."""
        question_lower = question.lower()
        for keyword, answer in self.security_answers.items():
            if keyword in question_lower:
                return answer
        return self.default_security_answer


class PortalAutomation(AutomationCapability):
    """
    AutomationCapability that drives the portal through one reusable
    browser connection.

    Usage:
        >>> automation = PortalAutomation()
        >>> outcome = await automation.login()
        >>> await automation.close()
    """

    def __init__(
        self,
        config: Optional[PortalConfig] = None,
        browser: Optional[BrowserController] = None,
        browser_config: Optional[BrowserConfig] = None,
    ):
        self.config = config or PortalConfig.from_env()
        self._browser = browser or BrowserController(browser_config)

    async def _page(self) -> Page:
        return await self._browser.get_page()

    async def _settle(self, page: Page, factor: float = 1.0) -> None:
        await page.wait_for_timeout(int(self.config.settle_ms * factor))

    async def login(self) -> ActionOutcome:
        page = await self._page()
        try:
            await page.goto(self.config.url, wait_until="networkidle")
            await self._settle(page)

            await page.get_by_role("textbox", name="User Name").fill(self.config.username)
            await page.get_by_role("textbox", name="Password").fill(self.config.password)
            await page.get_by_role("button", name="Sign in").click()
            await self._settle(page)

            if await page.get_by_text("Security Question").is_visible():
                question = await page.locator("text=/What was|What is/i").first.inner_text()
                logger.info("Security question detected: %s", question)
                await page.get_by_role("textbox").fill(self.config.security_answer_for(question))
                await page.get_by_role("button", name="Sign in").click()
                await self._settle(page)

            logged_in = await page.get_by_text("Dashboard").first.is_visible()
            return ActionOutcome(success=logged_in, data={"is_logged_in": logged_in})
        except PlaywrightError as e:
            logger.warning("Login failed: %s", e)
            return ActionOutcome(success=False, data={"is_logged_in": False}, error=str(e))

    async def list_entities(self) -> ActionOutcome:
        page = await self._page()
        try:
            await page.get_by_role("link", name=re.compile(re.escape(self.config.entity_menu), re.I)).click()
            await self._settle(page, 0.75)
            await page.get_by_role("link", name=self.config.entity_list).click()
            await page.wait_for_selector(f"text={self.config.entity_list}", timeout=10000)
            await page.wait_for_selector('button:has-text("Select")', timeout=15000)
            await self._settle(page, 1.5)

            rows = await page.evaluate(EXTRACT_ROWS_SCRIPT)
        except PlaywrightError as e:
            logger.warning("Failed to list entities: %s", e)
            return ActionOutcome(success=False, data=[], error=str(e))

        entities = [
            asdict(Entity(**row))
            for row in rows
            if row.get("code") and row.get("name")
        ]
        logger.info("Extracted %d entities", len(entities))
        return ActionOutcome(success=bool(entities), data=entities)

    async def select_entity(self, entity_code: str) -> ActionOutcome:
        page = await self._page()
        try:
            button = page.locator("tr").filter(has_text=entity_code).locator('button:has-text("Select")')
            if not await button.first.is_visible():
                return ActionOutcome(
                    success=False,
                    data={"selected_entity": entity_code},
                    error=f"No row for {entity_code}",
                )
            await button.first.click()
            await self._settle(page, 0.5)
            return ActionOutcome(success=True, data={"selected_entity": entity_code})
        except PlaywrightError as e:
            logger.warning("Failed to select %s: %s", entity_code, e)
            return ActionOutcome(success=False, data={"selected_entity": entity_code}, error=str(e))

    async def navigate_to_target(self) -> ActionOutcome:
        page = await self._page()
        target = re.compile(re.escape(self.config.target_name), re.I)
        try:
            await self._settle(page)
            if not await self._open_target_link(page, target):
                links = await page.locator("a").all_text_contents()
                logger.warning("Target %r not found; links: %s", self.config.target_name, links[:20])
                return ActionOutcome(success=False, error=f"{self.config.target_name} not found")

            await self._settle(page)
            add_button = page.get_by_role("button", name=re.compile(r"Add|New|Create", re.I))
            if await add_button.first.is_visible():
                await add_button.first.click()
            else:
                logger.info("No Add button found, form may already be open")
            await self._settle(page, 1.5)

            form_visible = await page.locator("form, .p-card, .card").first.is_visible()
            return ActionOutcome(success=True, data={"url": page.url, "form_visible": form_visible})
        except PlaywrightError as e:
            logger.warning("Failed to navigate to target: %s", e)
            return ActionOutcome(success=False, error=str(e))

    async def _open_target_link(self, page: Page, target: re.Pattern) -> bool:
        """Try direct links, parent menus, tabs, then any text match."""
        direct = page.locator('a, [role="menuitem"], .menu-item, .nav-link').filter(has_text=target).first
        if await direct.is_visible():
            await direct.click()
            return True

        for parent in self.config.target_parent_menus:
            menu = page.locator('a, span, [role="menuitem"]').filter(
                has_text=re.compile(f"^{re.escape(parent)}$", re.I)
            ).first
            if not await menu.is_visible():
                continue
            await menu.click()
            await self._settle(page, 0.5)
            sub = page.locator('a, span, div, [role="menuitem"]').filter(has_text=target).first
            if await sub.is_visible():
                await sub.click()
                return True

        tab = page.locator('[role="tab"], .nav-tab, .p-tabview-nav li').filter(has_text=target).first
        if await tab.is_visible():
            await tab.click()
            return True

        anywhere = page.get_by_text(target).first
        if await anywhere.is_visible():
            await anywhere.click()
            return True
        return False

    async def fill_target(self, payload: dict[str, Any]) -> ActionOutcome:
        page = await self._page()
        form = self.config.form
        filled: list[str] = []
        missing: list[str] = []
        entries = sorted(
            ((key, form.field_for(key), value) for key, value in payload.items()),
            key=lambda entry: form.section_rank(entry[1]),
        )
        section = form.sections[0] if form.sections else ""
        try:
            for key, form_field, value in entries:
                if form_field.section and form_field.section != section:
                    await self._open_section(page, form_field.section)
                    section = form_field.section
                if await self._fill_field(page, form_field, value):
                    filled.append(key)
                else:
                    missing.append(key)
        except PlaywrightError as e:
            logger.warning("Failed to fill form: %s", e)
            return ActionOutcome(success=False, data={"filled": filled}, error=str(e))

        if missing:
            logger.info("Fields not found on form: %s", missing)
        return ActionOutcome(
            success=bool(filled) and not missing,
            data={"filled": filled, "missing": missing},
        )

    async def _open_section(self, page: Page, section: str) -> None:
        tab = page.locator(SECTION_TABS).filter(has_text=re.compile(re.escape(section), re.I)).first
        if await tab.is_visible():
            await tab.click()
            await self._settle(page, 0.5)
        else:
            logger.info("No tab for section %r, assuming it is already shown", section)

    async def _fill_field(self, page: Page, form_field: FormField, value: Any) -> bool:
        kind = form_field.kind
        if kind is FieldKind.CHECKBOX or (kind is FieldKind.TEXT and isinstance(value, bool)):
            return await self._set_checkbox(page, form_field, _is_checked(value))

        text = "" if value is None else str(value)
        if kind is FieldKind.DROPDOWN:
            return await self._select_dropdown(page, form_field, text)
        if kind is FieldKind.DATETIME:
            return await self._fill_date(page, form_field, text)
        if kind is FieldKind.TEXTAREA:
            return await self._fill_textarea(page, form_field, text)
        return await self._fill_input(page, form_field.label, text)

    async def _fill_input(self, page: Page, label: str, text: str) -> bool:
        field_locator = page.get_by_label(label, exact=False).first
        if not await field_locator.is_visible():
            field_locator = page.get_by_role("textbox", name=label).first
            if not await field_locator.is_visible():
                return False

        if await field_locator.evaluate(TAG_NAME_SCRIPT) == "select":
            await field_locator.select_option(label=text)
        else:
            await field_locator.fill(text)
        return True

    async def _select_dropdown(self, page: Page, form_field: FormField, option: str) -> bool:
        """Native <select> first, then open the PrimeNG p-dropdown and click the option."""
        native = page.get_by_label(form_field.pattern).first
        if await native.is_visible() and await native.evaluate(TAG_NAME_SCRIPT) == "select":
            await native.select_option(label=option)
            return True

        dropdown = (
            page.locator(FIELD_CONTAINERS)
            .filter(has_text=form_field.pattern)
            .locator("p-dropdown, .p-dropdown")
            .first
        )
        if not await dropdown.is_visible():
            return False
        await dropdown.click()
        await self._settle(page, 0.25)

        wanted = re.escape(option.strip())
        for match in (rf"^\s*{wanted}\s*$", wanted):
            item = page.locator(DROPDOWN_ITEMS).filter(has_text=re.compile(match, re.I)).first
            if await item.is_visible():
                await item.click()
                return True

        await page.keyboard.press("Escape")
        logger.info("Dropdown %r has no option %r", form_field.label, option)
        return False

    async def _fill_date(self, page: Page, form_field: FormField, text: str) -> bool:
        candidates = [page.get_by_label(form_field.pattern)]
        if form_field.placeholder:
            candidates.append(page.get_by_placeholder(form_field.placeholder))
        candidates.append(page.locator(DATE_INPUTS))

        for candidate in candidates:
            date_input = candidate.first
            if await date_input.is_visible():
                await date_input.fill(text)
                # The calendar overlay stays open after typing
                await page.keyboard.press("Escape")
                return True
        return False

    async def _set_checkbox(self, page: Page, form_field: FormField, checked: bool) -> bool:
        box = page.get_by_role("checkbox", name=form_field.pattern).first
        if await box.is_visible():
            await box.set_checked(checked)
            return True

        # PrimeNG draws a styled box over a hidden input
        prime = page.locator("p-checkbox, .p-checkbox").filter(has_text=form_field.pattern).first
        if await prime.is_visible():
            if await prime.locator('input[type="checkbox"]').is_checked() != checked:
                await prime.locator(".p-checkbox-box").first.click()
            return True

        label = page.locator("label").filter(has_text=form_field.pattern).first
        if await label.is_visible():
            target = await label.get_attribute("for")
            if target:
                await page.locator(f'[id="{target}"]').set_checked(checked)
                return True
        return False

    async def _fill_textarea(self, page: Page, form_field: FormField, text: str) -> bool:
        for candidate in (
            page.get_by_label(form_field.pattern),
            page.locator(FIELD_CONTAINERS).filter(has_text=form_field.pattern).locator("textarea"),
        ):
            area = candidate.first
            if await area.is_visible():
                await area.fill(text)
                return True
        return False

    async def extract_form_structure(self) -> ActionOutcome:
        """
        Describe the open target form: sections, fields and buttons.

        Dropdown options are read from native selects on the page; PrimeNG
        dropdowns only render options when opened, so their known options
        are reported instead.
        """
        page = await self._page()
        form = self.config.form
        options: dict[str, list[str]] = {}
        try:
            for form_field in form.fields:
                if form_field.kind is FieldKind.DROPDOWN:
                    found = await self._dropdown_options(page, form_field)
                    if found:
                        options[form_field.name] = found
        except PlaywrightError as e:
            logger.warning("Failed to read form structure: %s", e)
            return ActionOutcome(success=False, data=form.describe(page.url), error=str(e))
        return ActionOutcome(success=True, data=form.describe(page.url, options))

    async def _dropdown_options(self, page: Page, form_field: FormField) -> list[str]:
        select = page.get_by_label(form_field.pattern).first
        if not await select.is_visible() or await select.evaluate(TAG_NAME_SCRIPT) != "select":
            return []
        texts = await select.locator("option").all_inner_texts()
        # Skip the "Select ..." placeholder option
        return [t.strip() for t in texts if t.strip() and not t.strip().lower().startswith("select")]

    async def submit_target(self, submit_type: SubmitType) -> ActionOutcome:
        page = await self._page()
        try:
            await page.get_by_role("button", name=submit_type.button_label, exact=True).click()
            await self._settle(page, 1.5)
            confirmed = await page.get_by_text(re.compile(r"saved|submitted|success", re.I)).first.is_visible()
        except PlaywrightError as e:
            logger.warning("Failed to submit form: %s", e)
            return ActionOutcome(success=False, data=f"Failed to submit form: {e}", error=str(e))

        message = "Form submitted successfully" if confirmed else "Form submission completed"
        return ActionOutcome(success=True, data=message)

    async def get_state(self) -> ActionOutcome:
        page = await self._page()
        return ActionOutcome(success=True, data={"url": page.url, "title": await page.title()})

    async def close(self) -> None:
        await self._browser.close()
