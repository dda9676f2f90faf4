import pytest
from selenium.common.exceptions import (
    ElementNotInteractableException,
    NoSuchElementException,
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)

from attendance_tracker.automation import ChromeSession, ChromeSessionFactory, chrome
from attendance_tracker.errors import AuthError, LayoutMismatch, NavigationTimeout


class FakeElement:
    def __init__(self, text="", *, children=None, click_error=None, type_error=None, stale=False):
        self.text = text
        self.children = children or {}
        self.click_error = click_error
        self.type_error = type_error
        self.stale = stale
        self.typed = []

    def clear(self):
        if self.type_error is not None:
            raise self.type_error

    def send_keys(self, text):
        self.typed.append(text)

    def click(self):
        if self.click_error is not None:
            raise self.click_error

    def is_enabled(self):
        if self.stale:
            raise StaleElementReferenceException("gone")
        return True

    def find_elements(self, by, value):
        return self.children.get(value, [])

    def get_attribute(self, name):
        return self.text if name == "innerText" else None


class FakeDriver:
    def __init__(self, elements=None, *, get_error=None, ready_state="complete"):
        self.elements = elements or {}
        self.get_error = get_error
        self.ready_state = ready_state
        self.page_load_timeout = None
        self.current_url = ""
        self.quit_called = False

    def set_page_load_timeout(self, timeout):
        self.page_load_timeout = timeout

    def get(self, url):
        if self.get_error is not None:
            raise self.get_error
        self.current_url = url

    def execute_script(self, script):
        return self.ready_state

    def find_element(self, by, value):
        try:
            return self.elements[value]
        except KeyError:
            raise NoSuchElementException(value) from None

    def quit(self):
        self.quit_called = True


def test_navigate_sets_page_load_timeout():
    driver = FakeDriver()

    ChromeSession(driver).navigate("https://portal.example.edu/", 12, wait_until="complete")

    assert driver.page_load_timeout == 12
    assert driver.current_url == "https://portal.example.edu/"


@pytest.mark.parametrize("error", [TimeoutException("slow"), WebDriverException("net::ERR_NAME")])
def test_navigate_failures_are_navigation_timeout(error):
    session = ChromeSession(FakeDriver(get_error=error))

    with pytest.raises(NavigationTimeout):
        session.navigate("https://portal.example.edu/", 1)


def test_navigate_waits_for_full_load_when_asked():
    session = ChromeSession(FakeDriver(ready_state="interactive"))

    session.navigate("https://portal.example.edu/", 0.01)
    with pytest.raises(NavigationTimeout):
        session.navigate("https://portal.example.edu/", 0.01, wait_until="complete")


def test_click_timeout_is_navigation_timeout():
    elements = {"#btnsubmit": FakeElement(click_error=TimeoutException("page load")), "html": FakeElement()}
    session = ChromeSession(FakeDriver(elements))

    with pytest.raises(NavigationTimeout):
        session.click("#btnsubmit")


def test_click_on_unclickable_element_is_layout_mismatch():
    elements = {
        "#btnsubmit": FakeElement(click_error=ElementNotInteractableException("hidden")),
        "html": FakeElement(),
    }
    session = ChromeSession(FakeDriver(elements))

    with pytest.raises(LayoutMismatch):
        session.click("#btnsubmit")


def test_fill_errors_are_layout_mismatch():
    elements = {"#txtuser_id": FakeElement(type_error=StaleElementReferenceException("gone"))}
    session = ChromeSession(FakeDriver(elements))

    with pytest.raises(LayoutMismatch):
        session.fill("#txtuser_id", "2021UGCS001")
    with pytest.raises(LayoutMismatch):
        session.fill("#missing", "x")


def test_fill_types_text():
    field = FakeElement()
    ChromeSession(FakeDriver({"#txtuser_id": field})).fill("#txtuser_id", "2021UGCS001")

    assert field.typed == ["2021UGCS001"]


def test_wait_for_raises_requested_error():
    session = ChromeSession(FakeDriver())

    with pytest.raises(NavigationTimeout):
        session.wait_for("#txtuser_id", 0.01, error=NavigationTimeout)
    with pytest.raises(AuthError):
        session.wait_for("#txtuser_id", 0.01, error=AuthError)
    with pytest.raises(LayoutMismatch):
        session.wait_for("table.table", 0.01)


def test_wait_for_present_element():
    ChromeSession(FakeDriver({"table.table": FakeElement()})).wait_for("table.table", 0.01)


def test_wait_for_navigation_after_page_reload():
    html = FakeElement()
    driver = FakeDriver({"#btnsubmit": FakeElement(), "html": html})
    session = ChromeSession(driver)
    session.click("#btnsubmit")
    html.stale = True

    session.wait_for_navigation(0.01)


def test_wait_for_navigation_that_never_happens_is_navigation_timeout():
    driver = FakeDriver({"#btnsubmit": FakeElement(), "html": FakeElement()})
    session = ChromeSession(driver)
    session.click("#btnsubmit")

    with pytest.raises(NavigationTimeout):
        session.wait_for_navigation(0.01)


def test_read_table_returns_cell_text():
    rows = [
        FakeElement(children={"td": []}),
        FakeElement(children={"td": [FakeElement("1"), FakeElement("CS301\n(T)")]}),
    ]
    driver = FakeDriver({"table.table": FakeElement(children={"tr": rows})})

    assert ChromeSession(driver).read_table("table.table") == [[], ["1", "CS301\n(T)"]]


def test_read_table_missing_is_layout_mismatch():
    with pytest.raises(LayoutMismatch):
        ChromeSession(FakeDriver()).read_table("table.table")


def test_close_quits_driver():
    driver = FakeDriver()
    ChromeSession(driver).close()

    assert driver.quit_called


def test_factory_returns_after_dom_content_loaded(monkeypatch, tmp_path):
    launched = {}

    def fake_chrome(service, options):
        launched["options"] = options
        return FakeDriver()

    monkeypatch.setattr(chrome.webdriver, "Chrome", fake_chrome)
    factory = ChromeSessionFactory(
        binary_path=tmp_path / "chrome",
        driver_path=tmp_path / "chromedriver",
        headless=True,
    )

    session = factory.launch()

    assert isinstance(session, ChromeSession)
    options = launched["options"]
    assert options.page_load_strategy == "eager"
    assert "--headless=new" in options.arguments
    assert options.binary_location == str(tmp_path / "chrome")
