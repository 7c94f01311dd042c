"""DSC International School (德思齐国际学校) 2025 intake."""

import re

from school_auto_apply.scripts.base import StandardFormScript, SubmitCandidate


class DscHkis2025Script(StandardFormScript):

    id = "dsc-hkis-2025"
    name = "德思齐国际学校/DSC"
    description = "德思齐国际学校/DSC自动申请脚本"
    supports_login = False

    entry_url = "https://www.dsc.edu.hk/admissions/applynow"
    login_url = "https://www.dsc.edu.hk/admissions/loginnow"

    submit_candidates = (
        SubmitCandidate.role(r"submit|apply|提交|确认"),
        SubmitCandidate.css('button[type="submit"]'),
        SubmitCandidate.css('input[type="submit"]'),
        SubmitCandidate.css('button:has-text("提交")'),
        SubmitCandidate.css('button:has-text("确认")'),
        SubmitCandidate.css("#submit-button"),
        SubmitCandidate.css(".submit-btn"),
    )

    success_patterns = (
        re.compile(r"success|成功|已提交|已完成", re.IGNORECASE),
        re.compile(r"thank you|感谢|提交成功", re.IGNORECASE),
    )
