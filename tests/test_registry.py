from mail_composer.transports import Transport, TransportRegistry, default_registry


class DummyTransport(Transport):
    def __init__(self, name, configured=True):
        self.name = name
        self.configured = configured

    def is_configured(self):
        return self.configured

    async def send(self, message):
        return True


def test_select_returns_first_configured_in_order():
    registry = TransportRegistry()
    registry.register("smtp", DummyTransport("smtp"))
    registry.register("sendmail", DummyTransport("sendmail"))

    entry = registry.select()
    assert entry.name == "smtp"


def test_select_skips_unconfigured():
    registry = TransportRegistry()
    registry.register("smtp", DummyTransport("smtp", configured=False))
    registry.register("sendmail", DummyTransport("sendmail"))

    assert registry.select().name == "sendmail"


def test_select_none_configured():
    registry = TransportRegistry()
    registry.register("smtp", DummyTransport("smtp", configured=False))
    assert registry.select() is None
    assert TransportRegistry().select() is None


def test_custom_predicate():
    registry = TransportRegistry()
    registry.register("smtp", DummyTransport("smtp"), predicate=lambda transport: False)
    registry.register("sendmail", DummyTransport("sendmail"))

    assert registry.select().name == "sendmail"


def test_register_same_name_replaces_in_place():
    registry = TransportRegistry()
    first = DummyTransport("smtp")
    replacement = DummyTransport("smtp")
    registry.register("smtp", first)
    registry.register("sendmail", DummyTransport("sendmail"))
    registry.register("smtp", replacement)

    assert registry.names() == ["smtp", "sendmail"]
    assert registry.get("smtp") is replacement
    assert len(registry) == 2


def test_unregister_and_get():
    registry = TransportRegistry()
    registry.register("smtp", DummyTransport("smtp"))
    registry.unregister("smtp")

    assert registry.get("smtp") is None
    assert list(registry) == []


def test_default_registry_is_shared():
    assert default_registry() is default_registry()
