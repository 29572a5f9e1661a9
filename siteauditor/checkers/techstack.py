"""Technology stack fingerprinting.

Each signature is a JS boolean expression over the page's DOM and globals.
Signatures are evaluated independently; a throwing signature is a miss.
"""

import json
from typing import List, Tuple

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.models import CheckKind


def _generator(name: str) -> str:
    return f"(document.querySelector('meta[name=\"generator\"]')?.content || '').includes('{name}')"


TECH_SIGNATURES: Tuple[Tuple[str, str], ...] = (
    # JS frameworks
    ("React", "!!window.React || !!document.querySelector('[data-reactroot], [data-reactid]')"),
    ("Next.js", "!!window.__NEXT_DATA__ || !!document.getElementById('__next')"),
    ("Vue.js", "!!window.Vue || !!window.__VUE__ || !!document.querySelector('[data-v-app], [data-server-rendered]')"),
    ("Nuxt", "!!window.__NUXT__ || !!window.$nuxt || !!document.getElementById('__nuxt')"),
    ("Angular", "!!window.ng || !!document.querySelector('[ng-version]')"),
    ("AngularJS", "!!window.angular || !!document.querySelector('[ng-app], [data-ng-app]')"),
    ("Svelte", "!!document.querySelector('[class*=\"svelte-\"]')"),
    ("Gatsby", "!!window.___gatsby || !!document.getElementById('___gatsby')"),
    ("Ember.js", "!!window.Ember"),
    ("Alpine.js", "!!window.Alpine || !!document.querySelector('[x-data]')"),
    ("htmx", "!!window.htmx"),
    ("jQuery", "!!window.jQuery"),
    # CMS / site builders / e-commerce
    ("WordPress", _generator("WordPress") + " || !!document.querySelector('link[href*=\"/wp-content/\"], script[src*=\"/wp-content/\"]')"),
    ("WooCommerce", "!!window.wc_add_to_cart_params || document.body.classList.contains('woocommerce')"),
    ("Elementor", "!!window.elementorFrontend || !!document.querySelector('.elementor')"),
    ("Shopify", "!!window.Shopify"),
    ("Wix", _generator("Wix") + " || !!window.wixBiSession"),
    ("Squarespace", "!!(window.Static && window.Static.SQUARESPACE_CONTEXT) || " + _generator("Squarespace")),
    ("Webflow", "!!window.Webflow || document.documentElement.hasAttribute('data-wf-site')"),
    ("Drupal", "!!window.Drupal || " + _generator("Drupal")),
    ("Joomla", _generator("Joomla")),
    ("Magento", "!!window.Mage || !!document.querySelector('script[type=\"text/x-magento-init\"]')"),
    ("GoDaddy Website Builder", _generator("Go Daddy") + " || " + _generator("GoDaddy")),
    ("Ghost", _generator("Ghost")),
    # CSS frameworks
    ("Bootstrap", "!!window.bootstrap || !!document.querySelector('link[href*=\"bootstrap\"], script[src*=\"bootstrap\"]')"),
    ("Tailwind CSS", "!!document.querySelector('link[href*=\"tailwind\"], script[src*=\"tailwindcss\"]')"),
    # tags and widgets
    ("Google Tag Manager", "!!window.google_tag_manager"),
    ("Google Analytics", "typeof window.gtag === 'function' || typeof window.ga === 'function'"),
    ("Facebook Pixel", "typeof window.fbq === 'function'"),
    ("HubSpot", "!!window._hsq || !!window.HubSpotConversations"),
    ("Intercom", "typeof window.Intercom === 'function'"),
    ("Cloudflare", "!!document.querySelector('script[src*=\"/cdn-cgi/\"]')"),
)


def build_tech_script(signatures=TECH_SIGNATURES) -> str:
    tests = ",\n        ".join(
        f"[{json.dumps(name)}, () => ({expr})]" for name, expr in signatures)
    return f"""() => {{
    const signatures = [
        {tests}
    ];
    const found = [];
    for (const [name, test] of signatures) {{
        try {{
            if (test()) found.push(name);
        }} catch (e) {{
            // missing global or element
        }}
    }}
    return found;
}}"""


TECH_SCRIPT = build_tech_script()


class TechStackChecker(BaseChecker):

    kind = CheckKind.TECH_STACK

    async def run(self, page, response) -> List[str]:
        return self.as_strings(await page.evaluate(TECH_SCRIPT))
