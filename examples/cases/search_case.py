"""
Product search with a random query prefix.
"""

from webaccept.core.types import By
from webaccept.orchestration.case import TestCase
from webaccept.orchestration.registry import register_case


@register_case(name="Search")
class SearchCase(TestCase):
    async def _run(self) -> None:
        await self.client.open_base_url()
        query = self.random_alphabetic_letters(3, "lower")
        self.output(f"searchingFor {query}", camel_case_to_human=True)

        await self.client.type_by(By.name("q"), query)
        await self.client.click_by(By.css_selector("form.search button[type=submit]"))

        results = await self.client.try_get_all_by(By.css_selector(".search-results li"))
        if not results and not await self.client.is_displayed(By.class_name("no-results")):
            await self.error("Neither results nor the empty-result notice were shown")

        await self.client.select_by_visible_text(By.id("sort"), "Price ascending")
