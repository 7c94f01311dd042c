"""Tests for the standard automation script flow against fake pages."""

from pathlib import Path

import pytest
from unittest.mock import AsyncMock, patch
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from conftest import FakeDocument, FakeElement, FakePage, show_text, submit_button
from school_auto_apply.engine.artifacts import ArtifactStore
from school_auto_apply.engine.context import ExecutionContext
from school_auto_apply.engine.form_filler import FormFiller
from school_auto_apply.engine.login import LoginHandler
from school_auto_apply.engine.models import (
    AutomationField, AutomationTemplate, ControlType, RunPayload, UserLoginInput
)
from school_auto_apply.engine.navigation import PageNavigator
from school_auto_apply.registry import ScriptRegistry
from school_auto_apply.scripts import (
    DscHkis2025Script, DscInternationalSchoolScript, ExampleSchoolScript, StandardFormScript,
    SubmitCandidate, VerificationOutcome
)
from school_auto_apply.scripts.common import FieldOverride, remap_template_fields
from school_auto_apply.utils.logging import get_logger

APPLY_URL = "https://example.edu/apply"
LOGIN_URL = "https://example.edu/login"


def refuse_click(page):
    raise PlaywrightTimeoutError("locator.click: Timeout 30000ms exceeded. element is not enabled")


class DemoScript(StandardFormScript):
    """Minimal script used to exercise the standard flow."""

    id = "demo"
    name = "Demo School"
    entry_url = "https://demo.test/apply"


def build_ctx(page, payload, artifact_dir):
    return ExecutionContext(
        payload=payload,
        page=page,
        navigator=PageNavigator(),
        form_filler=FormFiller(typing_delay_ms=0),
        artifacts=ArtifactStore(artifact_dir),
        logger=get_logger("tests"),
        login_handler=LoginHandler(),
    )


def example_payload(user_login=None):
    return RunPayload(
        school_id="example-school",
        template=AutomationTemplate(
            id="tpl-1",
            name="Example International School",
            fields=[
                AutomationField(field_id="english_first_name", value="Ada"),
                AutomationField(field_id="english_last_name", value="Lovelace"),
                AutomationField(field_id="student_email", value="ada@example.com"),
            ],
        ),
        user_login=user_login,
    )


def example_document(on_submit=None):
    return FakeDocument(
        labels={
            "First Name": [FakeElement()],
            "Last Name": [FakeElement()],
            "Email": [FakeElement(type="email")],
        },
        buttons=[submit_button("Submit", on_click=on_submit)],
    )


class TestStandardFlow:
    """Navigate, fill, submit, verify."""

    @pytest.mark.asyncio
    async def test_submit_and_confirm(self, tmp_path):
        document = example_document(on_submit=show_text("Thank you! Your application was received."))
        page = FakePage(document)

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is True
        assert result.message == "Example International School application submitted."
        assert page.visited == [APPLY_URL]
        assert document.labels["First Name"][0].value == "Ada"
        assert document.labels["Last Name"][0].value == "Lovelace"
        assert document.labels["Email"][0].value == "ada@example.com"
        assert page.clicks == document.buttons
        assert page.navigation_waits == [("networkidle", 30_000)]

    @pytest.mark.asyncio
    async def test_rejection_text_is_advisory(self, tmp_path):
        page = FakePage(example_document(on_submit=show_text("Please correct the errors below")))

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is True
        assert "reported a problem" in result.message

    @pytest.mark.asyncio
    async def test_unconfirmed_submission_still_succeeds(self, tmp_path):
        page = FakePage(example_document())

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is True
        assert "could not be confirmed" in result.message

    @pytest.mark.asyncio
    async def test_submit_navigation_timeout_is_tolerated(self, tmp_path):
        page = FakePage(example_document(on_submit=show_text("提交成功")))
        page.navigation_times_out = True
        page.timeout_load_states = {"networkidle"}

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is True
        assert result.message == "Example International School application submitted."
        assert len(page.clicks) == 1

    @pytest.mark.asyncio
    async def test_failed_submit_click_fails_the_run(self, tmp_path):
        page = FakePage(example_document(on_submit=refuse_click))

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is False
        assert "element is not enabled" in result.message
        assert result.errors[0].startswith("TimeoutError")
        assert Path(result.artifacts.screenshot_path).name.endswith("example-school-error.png")
        assert result.artifacts.raw_html_path is not None

    @pytest.mark.asyncio
    async def test_wait_timeouts_fail_the_run_when_not_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setattr("school_auto_apply.engine.navigation.IGNORE_WAIT_TIMEOUTS", False)
        page = FakePage(example_document())
        page.timeout_load_states = {"networkidle"}

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is False
        assert result.errors
        assert page.clicks == []

    @pytest.mark.asyncio
    async def test_unlocatable_fields_do_not_stop_submission(self, tmp_path):
        document = FakeDocument(buttons=[submit_button("Apply now", on_click=show_text("Success"))])
        page = FakePage(document)

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is True
        assert len(page.clicks) == 1


class TestSubmitControl:
    """Submit control discovery."""

    @pytest.mark.asyncio
    async def test_missing_submit_control_never_clicks(self, tmp_path):
        payload = RunPayload.model_validate({
            "schoolId": "demo",
            "template": {
                "id": "tpl-demo",
                "fields": [{"fieldId": "email", "value": "a@b.com", "controlType": "text"}],
            },
        })
        email_input = FakeElement(type="email")
        page = FakePage(FakeDocument(labels={"Email": [email_input]}))
        registry = ScriptRegistry.from_scripts([DemoScript()])

        result = await registry.dispatch(build_ctx(page, payload, tmp_path))

        assert result.success is False
        assert "submit button not found" in result.message
        assert page.clicks == []
        assert email_input.value == "a@b.com"
        assert Path(result.artifacts.screenshot_path).name == f"{payload.run_id}-demo-no-submit.png"
        assert Path(result.artifacts.raw_html_path).exists()

    @pytest.mark.asyncio
    async def test_role_candidate_wins_over_css(self, tmp_path):
        role_button = submit_button("Submit application")
        css_button = FakeElement(tag="button", type="submit")
        page = FakePage(FakeDocument(
            buttons=[role_button],
            selectors={'button[type="submit"]': [css_button]},
        ))
        ctx = build_ctx(page, example_payload(), tmp_path)

        locator = await DemoScript().locate_submit_button(ctx)

        assert locator.elements == [role_button]

    @pytest.mark.asyncio
    async def test_css_candidate_used_when_no_role_match(self, tmp_path):
        css_button = FakeElement(tag="input", type="submit")
        page = FakePage(FakeDocument(selectors={'input[type="submit"]': [css_button]}))
        ctx = build_ctx(page, example_payload(), tmp_path)

        locator = await DemoScript().locate_submit_button(ctx)

        assert locator.elements == [css_button]

    def test_candidate_descriptions(self):
        assert str(SubmitCandidate.css("#go")) == "css=#go"
        assert str(SubmitCandidate.role("submit")) == "role=submit"


class TestFailureArtifacts:
    """Errors are converted to failed results with artifacts."""

    @pytest.mark.asyncio
    async def test_navigation_timeout_captures_artifacts(self, tmp_path):
        page = FakePage(FakeDocument(html="<html><body>loading</body></html>"))
        page.goto_error = PlaywrightTimeoutError("Timeout 45000ms exceeded.")
        payload = example_payload()

        result = await ExampleSchoolScript().run(build_ctx(page, payload, tmp_path))

        assert result.success is False
        assert result.errors
        assert "Timeout 45000ms exceeded." in result.errors[0]
        assert result.artifacts.screenshot_path is not None
        assert result.artifacts.raw_html_path is not None
        assert Path(result.artifacts.screenshot_path).exists()
        assert Path(result.artifacts.raw_html_path).read_text(encoding="utf-8") == "<html><body>loading</body></html>"
        assert Path(result.artifacts.raw_html_path).name == f"{payload.run_id}-dom.html"

    @pytest.mark.asyncio
    async def test_error_status_fails_navigation(self, tmp_path):
        page = FakePage(FakeDocument(status=503))

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is False
        assert result.message == f"Failed to load {APPLY_URL} - status 503"

    @pytest.mark.asyncio
    async def test_screenshot_failure_still_returns_html(self, tmp_path):
        page = FakePage(FakeDocument())
        page.goto_error = PlaywrightTimeoutError("Timeout")
        page.screenshot_error = RuntimeError("Target closed")

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(), tmp_path))

        assert result.success is False
        assert result.artifacts.screenshot_path is None
        assert result.artifacts.raw_html_path is not None


class TestLogin:
    """Login and fallback behaviour."""

    def login_document(self):
        return FakeDocument(selectors={
            'input[type="email"]': [FakeElement(type="email")],
            'input[type="password"]': [FakeElement(type="password")],
            'button[type="submit"]': [FakeElement(tag="button", type="submit")],
        })

    @pytest.mark.asyncio
    async def test_login_on_entry_page(self, tmp_path):
        document = example_document(on_submit=show_text("Thank you"))
        document.selectors.update(self.login_document().selectors)
        page = FakePage(document)
        credentials = UserLoginInput(email="ada@example.com", password="pw")

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(credentials), tmp_path))

        assert result.success is True
        assert page.visited == [APPLY_URL]
        assert document.selectors['input[type="password"]'][0].value == "pw"

    @pytest.mark.asyncio
    async def test_falls_back_to_login_page(self, tmp_path):
        login_document = self.login_document()
        page = FakePage(documents={
            APPLY_URL: example_document(on_submit=show_text("Thank you")),
            LOGIN_URL: login_document,
        })
        credentials = UserLoginInput(email="ada@example.com", password="pw")

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(credentials), tmp_path))

        assert result.success is True
        assert page.visited == [APPLY_URL, LOGIN_URL, APPLY_URL]
        assert login_document.selectors['input[type="email"]'][0].value == "ada@example.com"
        assert login_document.selectors['input[type="password"]'][0].value == "pw"
        assert page.navigation_waits[0] == ("domcontentloaded", 30_000)

    @pytest.mark.asyncio
    async def test_continues_unauthenticated_without_login_form(self, tmp_path):
        page = FakePage(documents={
            APPLY_URL: example_document(on_submit=show_text("Thank you")),
            LOGIN_URL: FakeDocument(),
        })
        credentials = UserLoginInput(username="ada", password="pw")

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(credentials), tmp_path))

        assert result.success is True
        assert page.visited == [APPLY_URL, LOGIN_URL, APPLY_URL]

    @pytest.mark.asyncio
    async def test_unreachable_login_page_continues_unauthenticated(self, tmp_path):
        document = example_document(on_submit=show_text("Thank you"))
        page = FakePage(documents={
            APPLY_URL: document,
            LOGIN_URL: FakeDocument(status=404),
        })
        credentials = UserLoginInput(email="ada@example.com", password="pw")

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(credentials), tmp_path))

        assert result.success is True
        assert result.message == "Example International School application submitted."
        assert page.visited == [APPLY_URL, LOGIN_URL, APPLY_URL]
        assert document.labels["First Name"][0].value == "Ada"
        assert page.clicks == document.buttons

    @pytest.mark.asyncio
    async def test_failed_login_click_falls_back_to_login_page(self, tmp_path):
        document = example_document(on_submit=show_text("Thank you"))
        document.selectors.update({
            'input[type="email"]': [FakeElement(type="email")],
            'input[type="password"]': [FakeElement(type="password")],
            'button[type="submit"]': [FakeElement(tag="button", type="submit", on_click=refuse_click)],
        })
        page = FakePage(documents={APPLY_URL: document, LOGIN_URL: self.login_document()})
        credentials = UserLoginInput(email="ada@example.com", password="pw")

        result = await ExampleSchoolScript().run(build_ctx(page, example_payload(credentials), tmp_path))

        assert result.success is True
        assert page.visited == [APPLY_URL, LOGIN_URL, APPLY_URL]

    @pytest.mark.asyncio
    async def test_scripts_without_login_support_skip_login(self, tmp_path):
        page = FakePage(FakeDocument(buttons=[submit_button("提交", on_click=show_text("已提交"))]))
        payload = example_payload(UserLoginInput(email="ada@example.com", password="pw"))

        result = await DscHkis2025Script().run(build_ctx(page, payload, tmp_path))

        assert result.success is True
        assert page.visited == ["https://www.dsc.edu.hk/admissions/applynow"]


class TestDscInternationalSchool:
    """Finalsite form with lenient waits."""

    @pytest.mark.asyncio
    async def test_confirmation_url_counts_as_confirmed(self, tmp_path):
        name_input = FakeElement()
        page = FakePage(FakeDocument(
            labels={"Student Name": [name_input]},
            buttons=[submit_button("提交申请", on_click=show_text("", url="https://www.dsc.edu.hk/thank-you"))],
        ))
        page.timeout_load_states = {"load"}
        payload = RunPayload(
            school_id="dsc-international-school",
            template=AutomationTemplate(id="tpl", fields=[
                AutomationField(field_id="student_name", label="Student Name", value="Ada"),
                AutomationField(field_id="missing", label="Not on page", value="x"),
            ]),
        )
        script = DscInternationalSchoolScript()
        ctx = build_ctx(page, payload, tmp_path)

        result = await script.run(ctx)

        assert result.success is True
        assert result.message == f"{script.name} application submitted."
        assert name_input.value == "Ada"
        assert page.navigation_waits == [("networkidle", 20_000)]

    @pytest.mark.asyncio
    async def test_verification_reads_page_text(self, tmp_path):
        page = FakePage(FakeDocument(body_text="申请已收到"))
        ctx = build_ctx(page, example_payload(), tmp_path)

        outcome = await DscInternationalSchoolScript().verify_submission(ctx)

        assert outcome is VerificationOutcome.CONFIRMED

    @pytest.mark.asyncio
    async def test_each_field_is_located_once_and_scrolled_into_view(self, tmp_path):
        page = FakePage(FakeDocument(labels={"Student Name": [FakeElement()]}))
        payload = RunPayload(
            school_id="dsc-international-school",
            template=AutomationTemplate(id="tpl", fields=[
                AutomationField(field_id="student_name", label="Student Name", value="Ada"),
                AutomationField(field_id="missing", label="Not on page", value="x"),
            ]),
        )
        script = DscInternationalSchoolScript()
        ctx = build_ctx(page, payload, tmp_path)

        with patch.object(ctx.form_filler, "locate_field", wraps=ctx.form_filler.locate_field) as locate, \
                patch.object(script, "_scroll_into_view", new=AsyncMock()) as scroll:
            report = await script.fill(ctx, payload.template.fields)

        assert report.filled == ["student_name"]
        assert locate.call_count == 2
        scroll.assert_awaited_once()


class TestFieldOverrides:
    """Explicit override tables."""

    def test_overrides_keep_template_order(self):
        template = AutomationTemplate(id="t", fields=[
            AutomationField(field_id="a", label="A"),
            AutomationField(field_id="b", label="B", metadata={"required": True}),
            AutomationField(field_id="c", label="C"),
        ])
        overrides = {
            "c": FieldOverride(label="Surname"),
            "b": FieldOverride(control_type=ControlType.SELECT, metadata={"site": "x"}),
            "zzz": FieldOverride(label="ignored"),
        }

        fields = remap_template_fields(template, overrides)

        assert [f.field_id for f in fields] == ["a", "b", "c"]
        assert [f.label for f in fields] == ["A", "B", "Surname"]
        assert fields[1].control_type == ControlType.SELECT
        assert fields[1].metadata == {"required": True, "site": "x"}
        assert template.fields[2].label == "C"

    def test_example_school_remaps_labels(self, tmp_path):
        ctx = build_ctx(FakePage(), example_payload(), tmp_path)
        labels = [f.label for f in ExampleSchoolScript().build_fields(ctx)]
        assert labels == ["First Name", "Last Name", "Email"]
