import logging
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo
from telegram.ext import Application, CommandHandler, CallbackQueryHandler, ContextTypes
from telegram.constants import ParseMode

import leveling
from models import ErrorCode, Pet, PetStatus
from service import PetService

logger = logging.getLogger(__name__)

# --- User-facing texts ---

STAGE_EMOJI = {
    "egg": "🥚", "baby": "🐛", "child": "🐯", "teen": "🦊", "adult": "🦉", "elder": "🐉",
}

ALERT_TEXTS = {
    "death": "💀 Your pet has passed away! Buy a Phoenix Feather from the shop to revive them.",
    "dying": "⚠️ Your pet is dying! Take immediate action to save them!",
    "hunger": "🍎 Your pet is starving and needs food immediately!",
    "hunger-low": "🍎 Your pet is getting hungry. Consider feeding them soon.",
    "health": "❤️ Your pet's health is critically low! Buy medicine now!",
    "health-low": "❤️ Your pet's health is declining. Consider buying medicine.",
    "sickness": "🤒 Your pet is very sick and needs immediate medical attention!",
    "sickness-moderate": "🤒 Your pet is getting sick. Consider buying medicine.",
    "energy": "😴 Your pet is exhausted and needs rest.",
    "happiness": "😢 Your pet is very unhappy. Play with them or buy toys!",
}

ERROR_TEXTS = {
    ErrorCode.INSUFFICIENT_FUNDS: "Not enough points. Read a bit more to earn some! 📚",
    ErrorCode.PET_IS_DEAD: "Your pet has passed away. Only a Phoenix Feather can help now.",
    ErrorCode.EVOLUTION_LOCKED: "Your pet isn't ready to evolve yet.",
}


def format_status(pet: Pet, status: PetStatus) -> str:
    """Status card shown by /start and the Status button."""
    emoji = STAGE_EMOJI.get(pet.evolution_stage.value, "🐾")
    text = (
        f"{emoji} <b>{pet.name}</b> (level {pet.level}, {pet.evolution_stage.value})\n"
        f"Mood: {status.mood.value}\n\n"
        f"🍖 Hunger: {pet.hunger}/100\n"
        f"😊 Happiness: {pet.happiness}/100\n"
        f"⚡ Energy: {pet.energy}/100\n"
        f"❤️ Health: {pet.health}/100\n"
        f"🧼 Cleanliness: {pet.cleanliness}/100\n"
        f"🤒 Sickness: {pet.sickness}/100\n\n"
        f"⭐ XP: {pet.experience}/{pet.experience_to_next}\n"
        f"💰 Points: {pet.points}   🪙 Coins: {pet.coins}\n"
        f"📚 Books read: {pet.total_books_read}"
    )
    if status.alerts:
        text += "\n\n" + "\n".join(ALERT_TEXTS.get(a.code, a.code) for a in status.alerts)
    return text


def format_error(error: ErrorCode) -> str:
    return ERROR_TEXTS.get(error, f"That didn't work ({error.value}).")


class PetBot:
    """
    Telegram front end for the pet: status card plus quick care actions.
    """
    def __init__(self, service: PetService, webapp_url: str, webhook_url: str):
        self.service = service
        self.webapp_url = webapp_url
        self.webhook_url = webhook_url
        self.application = None

    def main_keyboard(self) -> InlineKeyboardMarkup:
        keyboard = [
            [InlineKeyboardButton("🎮 Minigames", web_app=WebAppInfo(url=f"{self.webapp_url}/minigames"))],
            [
                InlineKeyboardButton("🍖 Feed", callback_data='feed'),
                InlineKeyboardButton("🎾 Play", callback_data='play'),
                InlineKeyboardButton("😴 Sleep", callback_data='sleep'),
            ],
            [
                InlineKeyboardButton("📊 Status", callback_data='status'),
                InlineKeyboardButton("✨ Evolve", callback_data='evolve'),
            ],
        ]
        return InlineKeyboardMarkup(keyboard)

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handles /start."""
        user = update.effective_user
        user_id = str(user.id)
        pet = self.service.get_pet(user_id)
        text = f"Hi, {user.first_name}! 👋\n\n" + format_status(pet, self.service.status(user_id))
        await update.message.reply_html(text, reply_markup=self.main_keyboard())

    async def button_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handles inline button presses."""
        query = update.callback_query
        await query.answer()

        user_id = str(query.from_user.id)
        action = query.data
        result = None

        if action == 'feed':
            result = self.service.feed(user_id)
        elif action == 'play':
            result = self.service.play(user_id)
        elif action == 'sleep':
            result = self.service.sleep(user_id)
        elif action == 'evolve':
            result = self.service.evolve(user_id)
        elif action != 'status':
            logger.warning(f"Unknown callback action: {action}")
            return

        pet = self.service.get_pet(user_id)
        text = format_status(pet, self.service.status(user_id))
        if result is not None and not result.success:
            text = format_error(result.error) + "\n\n" + text
        elif result is not None and result.level_ups:
            text = f"🎉 Level up! {pet.name} is now level {pet.level}.\n\n" + text
        if leveling.can_evolve(pet):
            text += "\n\n✨ Your pet is ready to evolve!"

        await query.edit_message_text(text, parse_mode=ParseMode.HTML, reply_markup=self.main_keyboard())


async def setup_bot(bot: PetBot, token: str):
    """Builds the bot application and registers handlers."""
    logger.info("Initializing Telegram bot application...")
    application = Application.builder().token(token).build()

    application.add_handler(CommandHandler("start", bot.start))
    application.add_handler(CallbackQueryHandler(bot.button_callback))

    bot.application = application
    logger.info("Command handlers registered.")
