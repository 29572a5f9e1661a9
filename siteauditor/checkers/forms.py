"""Form semantics and accessibility scan."""

from typing import List

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.models import CheckKind


FORM_SCRIPT = """() => {
    const issues = [];

    document.querySelectorAll("form").forEach((form, formIndex) => {
        const formSel = form.id ? "form#" + form.id : "form:nth-of-type(" + (formIndex + 1) + ")";
        const method = (form.getAttribute("method") || "get").toLowerCase();

        const hasAction = form.getAttribute("action") || form.getAttribute("onsubmit");
        const hasJsHandler = ["data-action", "ng-submit", "v-on:submit", "@submit"]
            .some((a) => form.hasAttribute(a));
        const hasHtmx = ["hx-get", "hx-post", "hx-put", "hx-patch", "hx-delete"]
            .some((a) => form.hasAttribute(a));
        if (!hasAction && !hasJsHandler && !hasHtmx) {
            issues.push(formSel + " is missing action attribute or JavaScript submit handler");
        }

        const hasFile = !!form.querySelector('input[type="file"]');
        const hasPassword = !!form.querySelector('input[type="password"]');
        const hasLargeText = Array.from(form.querySelectorAll("textarea"))
            .some((t) => t.value.length > 2000);
        if (method === "get" && (hasFile || hasPassword || hasLargeText)) {
            issues.push(formSel + " should use POST method for sensitive or large data submission");
        }
        if (hasFile && form.getAttribute("enctype") !== "multipart/form-data") {
            issues.push(formSel + " is missing proper enctype='multipart/form-data'");
        }

        if (method !== "get") {
            const tokens = form.querySelectorAll(
                'input[name*="csrf"], input[name*="token"], input[name="_token"], input[name="authenticity_token"]');
            if (tokens.length === 0) {
                issues.push(formSel + " uses " + method.toUpperCase() + " but appears to be missing CSRF protection");
            }
        }

        if (!form.querySelector('button[type="submit"], input[type="submit"], button:not([type])')) {
            issues.push(formSel + " is missing a submit button");
        }

        const seenIds = new Set();
        form.querySelectorAll("[id]").forEach((el) => {
            if (seenIds.has(el.id)) {
                issues.push(formSel + " has duplicate IDs (" + el.id + ")");
            }
            seenIds.add(el.id);
        });

        const inputs = form.querySelectorAll(
            'input:not([type="hidden"]):not([type="submit"]):not([type="button"]), select, textarea');
        inputs.forEach((input, inputIndex) => {
            const tag = input.tagName.toLowerCase();
            const sel = input.id ? tag + "#" + input.id
                : input.name ? tag + '[name="' + input.name + '"]'
                : tag + ":nth-of-type(" + (inputIndex + 1) + ")";
            const where = sel + " (in " + formSel + ")";

            const hasLabel = input.id
                ? !!document.querySelector('label[for="' + CSS.escape(input.id) + '"]') || input.closest("label") !== null
                : input.closest("label") !== null;
            if (!hasLabel) {
                issues.push(where + " lacks associated label");
            }
            if (!input.name) {
                issues.push(where + " is missing name attribute (required for form submission)");
            }

            if (input.type === "text" && input.name) {
                const name = input.name.toLowerCase();
                if (name.includes("email") || name.includes("tel") || name.includes("phone")) {
                    issues.push(where + " has incorrect type");
                }
            }

            if (!hasLabel && !input.getAttribute("aria-label") && !input.getAttribute("aria-labelledby")) {
                issues.push(where + " lacks accessible name");
            }

            if (input.type === "password" && window.location.protocol !== "https:") {
                issues.push(where + " is a password field not served over HTTPS");
            }

            if (input.required && input.type === "text") {
                const validated = ["pattern", "min", "max", "minlength", "maxlength"]
                    .some((a) => input.hasAttribute(a));
                if (!validated) {
                    issues.push(where + " has no validation");
                }
            }
        });
    });

    return issues;
}"""


class FormChecker(BaseChecker):

    kind = CheckKind.FORM_ISSUES

    async def run(self, page, response) -> List[str]:
        return self.as_strings(await page.evaluate(FORM_SCRIPT))
