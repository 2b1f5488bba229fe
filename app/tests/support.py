BUYER_ID = "buyer-1"
VENDOR_ID = "vendor-1"
PRODUCER_ID = "producer-1"


class RecordingEmailSender:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, notification):
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.sent.append(notification)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
