from app.core.config import load_settings
from app.core.generation import send_chat_message


async def main():
    settings = load_settings()

    # Check the credential is configured
    if settings.api_key:
        # Send a single chat turn with no prior history
        reply = await send_chat_message("Hello, how are you?", settings=settings)
        print(f"Model response: {reply.text}")
    else:
        print("API_KEY is not set; configure it in the environment or .env.")

if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
