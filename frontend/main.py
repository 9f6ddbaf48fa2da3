"""
NiceGUI frontend for the model chat backend.
The chat page keeps no local transcript: it re-fetches history from /api/chat/history after each send.
"""
from nicegui import ui

from client import ChatApiClient, ChatController
from config import settings


def add_nav():
    """Add navigation bar to current page."""
    with ui.header().classes("items-center gap-4 shadow"):
        ui.link("Chat", "/chat").classes("text-lg font-medium")


@ui.page("/")
def index():
    add_nav()
    ui.navigate.to("/chat")


@ui.page("/chat")
async def chat_page():
    add_nav()

    controller = ChatController(ChatApiClient(settings.api_base), user_id=settings.default_user_id)

    def render_history():
        chat_container.clear()
        with chat_container:
            if not controller.messages:
                ui.label("No messages yet. Pick a model and say hello.").classes("text-gray-500")
            for m in controller.messages:
                is_user = m.get("role") == "user"
                justify = "justify-end" if is_user else "justify-start"
                card_classes = "bg-primary text-primary-content" if is_user else "bg-base-200"
                with ui.row().classes(f"w-full {justify}"):
                    with ui.card().classes(f"max-w-[85%] sm:max-w-[80%] {card_classes}"):
                        if is_user:
                            ui.label(m.get("content", "")).classes("whitespace-pre-wrap break-words")
                        else:
                            ui.markdown(m.get("content", "")).classes("break-words")
                        ui.label(m.get("model_tag", "")).classes("text-xs opacity-60")
            if controller.sending:
                with ui.row().classes("w-full justify-start"):
                    ui.spinner("dots", size="sm")

    def render_state():
        options = {m["tag"]: m.get("name") or m["tag"] for m in controller.models}
        model_select.set_options(options, value=controller.selected_model)
        busy = controller.sending
        message_input.set_enabled(not busy)
        send_btn.set_enabled(not busy)
        if controller.error:
            status.set_text(controller.error)
            status.classes(replace="text-sm text-error")
            retry_btn.set_visibility(controller.error_kind == "store_unavailable")
        else:
            status.set_text("")
            retry_btn.set_visibility(False)
        render_history()

    async def send_message():
        text = (message_input.value or "").strip()
        if not controller.can_send(text):
            await controller.send(text)
            return
        message_input.value = ""
        sent = await controller.send(text)
        if not sent:
            # Give the prompt back so the user can retry
            message_input.value = text

    async def on_user_change(e):
        controller.set_user(e.value or "")
        await controller.refresh_history()

    async def retry():
        await controller.load_models()
        await controller.refresh_history()

    # Wrapper: fill viewport below header; column layout so only history scrolls
    page_height = "calc(100vh - 4rem)"
    with ui.column().classes("w-full").style(
        f"height: {page_height}; min-height: 0; display: flex; flex-direction: column;"
    ):
        with ui.row().classes("w-full items-center gap-2 px-3 sm:px-4 pt-4").style("flex-shrink: 0;"):
            ui.input(
                label="User ID",
                value=controller.user_id,
                on_change=on_user_change,
            ).props("outlined dense debounce=500").classes("w-48")
            model_select = ui.select(
                options={},
                label="Model",
                value=None,
                on_change=lambda e: controller.select_model(e.value),
            ).props("outlined dense").classes("w-64")
            status = ui.label("").classes("text-sm")
            retry_btn = ui.button("Retry", on_click=retry).props("flat rounded size=sm")
            retry_btn.set_visibility(False)

        # Scrollable history only
        with ui.element("div").classes("w-full min-h-0").style(
            "flex: 1 1 0; overflow-y: auto; overflow-x: hidden; -webkit-overflow-scrolling: touch;"
        ):
            chat_container = ui.column().classes("w-full gap-3 pt-4 px-3 sm:px-4 pb-0 min-h-full")
        # Input row: fixed at bottom, no gap above
        with ui.row().classes("w-full items-center gap-2 px-3 sm:px-4 pb-4 pt-0 bg-gray-100").style(
            "flex-shrink: 0;"
        ):
            message_input = (
                ui.input(placeholder="Type a message...")
                .classes("flex-1 min-w-0")
                .props("outlined rounded dense")
                .on("keydown.enter", send_message)
            )
            send_btn = ui.button("Send", on_click=send_message).props("rounded flat")

    controller.subscribe(render_state)
    await controller.load_models()
    await controller.refresh_history()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title="Model Chat",
        port=settings.port,
        reload=False,
    )
