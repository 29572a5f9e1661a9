"""Mobile responsiveness heuristics.

Starts from a score of 100 and deducts per problem found on the emulated
mobile viewport. The last list entry is always the score line, e.g.
"Score: 64 (Minor ⚠️)"; it is not itself a finding.
"""

from typing import List

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.models import CheckKind


SCORE_PREFIX = "Score: "

RESPONSIVE_SCRIPT = """() => {
    const issues = [];
    let score = 100;
    const visible = (el) => el.offsetParent !== null;

    const viewport = document.querySelector('meta[name="viewport"]');
    if (!viewport) {
        issues.push("No viewport meta tag");
        score -= 30;
    } else if (!(viewport.getAttribute("content") || "").includes("width=device-width")) {
        issues.push("Viewport meta tag missing width attribute");
        score -= 25;
    }

    let hasMediaQueries = Array.from(document.styleSheets).some((sheet) => {
        try {
            return Array.from(sheet.cssRules).some((rule) => rule.type === CSSRule.MEDIA_RULE);
        } catch (e) {
            return false;  // cross-origin sheet
        }
    });
    if (!hasMediaQueries) {
        hasMediaQueries = Array.from(document.querySelectorAll('link[rel="stylesheet"]'))
            .some((link) => link.media && link.media !== "all");
    }
    if (!hasMediaQueries) {
        issues.push("No media queries in stylesheets");
        score -= 25;
    }

    const root = document.documentElement;
    if (root.scrollWidth > root.clientWidth) {
        issues.push("Has horizontal scrollbar");
        score -= 25;
    }

    const overflowing = Array.from(document.querySelectorAll("*"))
        .filter((el) => visible(el) && el.scrollWidth > el.clientWidth + 5).length;
    if (overflowing > 0) {
        issues.push("Has horizontally overflowing elements");
        score -= Math.min(15, overflowing * 2);
    }

    const interactive = Array.from(document.querySelectorAll(
        'a, button, input, select, textarea, [onclick], [role="button"]'));
    const smallTargets = interactive.filter((el) => {
        if (!visible(el)) return false;
        const r = el.getBoundingClientRect();
        return r.width > 0 && r.height > 0 && (r.width < 44 || r.height < 44);
    }).length;
    if (smallTargets > 0) {
        issues.push("Has small tap targets");
        score -= Math.min(12, smallTargets * 1.2);
    }

    const crowdedTargets = interactive.filter((el) => {
        if (!visible(el)) return false;
        const r = el.getBoundingClientRect();
        const below = document.elementsFromPoint(r.x + r.width / 2, r.y + r.height + 8);
        return below.some((n) => n !== el && interactive.includes(n) &&
            n.getBoundingClientRect().y < r.y + r.height + 16);
    }).length;
    if (crowdedTargets > 0) {
        issues.push("Has crowded tap targets");
        score -= Math.min(6, crowdedTargets * 0.6);
    }

    const rigidImages = Array.from(document.querySelectorAll("img")).filter((img) => {
        if (!visible(img)) return false;
        const style = window.getComputedStyle(img);
        return img.getBoundingClientRect().width > window.innerWidth &&
            style.maxWidth === "none" && !style.width.includes("%");
    }).length;
    if (rigidImages > 0) {
        issues.push("Has non flexible images");
        score -= Math.min(9, rigidImages * 1.8);
    }

    const smallText = Array.from(document.querySelectorAll(
        "p, h1, h2, h3, h4, h5, h6, span, a, li, td, th")).filter((el) => {
        if (!visible(el) || !el.textContent.trim()) return false;
        return parseFloat(window.getComputedStyle(el).fontSize) < 12;
    }).length;
    if (smallText > 0) {
        issues.push("Has small text");
        score -= Math.min(9, smallText * 1.2);
    }

    const flexible = Array.from(document.querySelectorAll(
        "main, .container, .wrapper, header, nav, section, article, aside, footer")).some((el) => {
        if (!visible(el)) return false;
        const style = window.getComputedStyle(el);
        return style.display.includes("flex") || style.display.includes("grid") ||
            (style.display === "block" &&
                (style.maxWidth.includes("%") || style.width.includes("%") || style.width === "auto"));
    });
    if (!flexible) {
        issues.push("No flexible layout patterns");
        score -= 10;
    }

    return { issues: issues, score: Math.max(0, Math.round(score)) };
}"""


def score_band(score: int) -> str:
    if score >= 75:
        return "Good ✅"
    if score >= 60:
        return "Minor ⚠️"
    if score >= 45:
        return "Major 🛑"
    return "Critical ❌"


def score_line(score: int) -> str:
    return f"{SCORE_PREFIX}{score} ({score_band(score)})"


class ResponsiveChecker(BaseChecker):

    kind = CheckKind.RESPONSIVE_ISSUES

    async def run(self, page, response) -> List[str]:
        data = await page.evaluate(RESPONSIVE_SCRIPT) or {}
        issues = self.as_strings(data.get("issues"))
        issues.append(score_line(int(data.get("score", 0))))
        return issues

    def has_findings(self, value) -> bool:
        return any(not line.startswith(SCORE_PREFIX) for line in value or [])
