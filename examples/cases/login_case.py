"""
Login through the account page and check the greeting.
"""

from webaccept.core.types import By, ElementState, VerificationType
from webaccept.orchestration.case import TestCase


class LoginCase(TestCase):
    """Signs in with the demo account."""

    username = "demo"
    password = "demo-password"

    async def _run(self) -> None:
        await self.open_login_page()
        await self.submit_credentials()
        await self.check_greeting()

    async def open_login_page(self) -> None:
        await self.client.open_base_url("account", "login")
        await self.client.wait_until_id_is_displayed("login-form", timeout=10)

    async def submit_credentials(self) -> None:
        await self.client.type_id("username", self.username)
        await self.client.type_id("password", self.password)
        await self.client.click_id("submit")

    async def check_greeting(self) -> None:
        await self.client.wait_until_element_is(ElementState.DISPLAYED, By.class_name("greeting"))
        if not await self.client.verify_regex_by(
            By.class_name("greeting"), f"/hello,? {self.username}/i", VerificationType.text()
        ):
            await self.error("Greeting does not name the signed in user")
